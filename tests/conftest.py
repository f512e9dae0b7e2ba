"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path
from urllib.parse import quote

import pytest
from git import Repo

from reposync.core.config.settings import TOKEN_ENV_VARS, get_settings
from reposync.core.logger.logger import RedactingFormatter
from reposync.models.workspace import WorkspaceConfig
from reposync.propagation.workspace import WorkspaceManager

# Contains characters that change under URL encoding
TEST_TOKEN = "ghs_test/token+value"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep host tokens, cached settings and registered secrets out of tests."""
    for name in ("REPOSYNC_GITHUB_TOKEN", "REPOSYNC_CONFIG", *TOKEN_ENV_VARS):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(RedactingFormatter, "secrets", set())
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that is cleaned up after the test.

    Yields:
        Path to the temporary directory.
    """
    temp_path = Path(tempfile.mkdtemp()).resolve()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def workspace_config(temp_dir: Path) -> WorkspaceConfig:
    """Create a workspace configuration for testing.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        WorkspaceConfig instance.
    """
    return WorkspaceConfig(base_dir=temp_dir / "workspaces", prefix="test-")


@pytest.fixture
def workspace_manager(workspace_config: WorkspaceConfig) -> WorkspaceManager:
    """Create a workspace manager for testing.

    Args:
        workspace_config: Workspace configuration fixture.

    Returns:
        WorkspaceManager instance.
    """
    return WorkspaceManager(config=workspace_config)


class FakeGitHub:
    """Bare repositories standing in for github.com.

    A temporary global git config rewrites both ``https://github.com/`` and
    the authenticated ``https://x-access-token:<token>@github.com/`` prefix
    to ``file://<root>/``, so the real URLs are stored in remotes while all
    traffic stays local.
    """

    def __init__(self, root: Path) -> None:
        self.root = root / "remotes"
        self.seeds = root / "seeds"
        self.root.mkdir(parents=True)
        self.seeds.mkdir(parents=True)

    def bare_path(self, repo: str) -> Path:
        return self.root / f"{repo}.git"

    def _seed(self, repo: str) -> Repo:
        return Repo(self.seeds / repo)

    def create_repo(self, repo: str, files: dict[str, str | bytes], default_branch: str = "main") -> Path:
        """Create ``owner/repo`` with one commit holding ``files``."""
        seed_path = self.seeds / repo
        seed_path.mkdir(parents=True)
        seed = Repo.init(seed_path, initial_branch=default_branch)
        self._write(seed_path, files)
        seed.git.add("-A")
        seed.git.commit("-m", "Initial commit")

        bare = self.bare_path(repo)
        bare.parent.mkdir(parents=True, exist_ok=True)
        Repo.init(bare, bare=True, initial_branch=default_branch)
        seed.git.push(str(bare), f"{default_branch}:refs/heads/{default_branch}")
        return bare

    def push_branch(self, repo: str, branch: str, files: dict[str, str | bytes] | None = None) -> None:
        """Create ``branch`` on the remote, optionally with an extra commit."""
        seed = self._seed(repo)
        start = seed.active_branch.name
        seed.git.checkout("-b", branch)
        if files:
            self._write(Path(seed.working_dir), files)
            seed.git.add("-A")
            seed.git.commit("-m", f"Work on {branch}")
        seed.git.push(str(self.bare_path(repo)), f"{branch}:refs/heads/{branch}")
        seed.git.checkout(start)

    def branches(self, repo: str) -> list[str]:
        return [head.name for head in Repo(self.bare_path(repo)).heads]

    def read_file(self, repo: str, branch: str, path: str) -> str:
        return Repo(self.bare_path(repo)).git.show(f"{branch}:{path}")

    def head_message(self, repo: str, branch: str) -> str:
        return Repo(self.bare_path(repo)).commit(branch).message

    @staticmethod
    def _write(root: Path, files: dict[str, str | bytes]) -> None:
        for rel_path, content in files.items():
            path = root / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)


@pytest.fixture
def fake_github(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> FakeGitHub:
    """Serve ``https://github.com/<owner>/<repo>.git`` from local bare repositories.

    Returns:
        FakeGitHub rooted in the temporary directory.
    """
    github = FakeGitHub(temp_dir / "github")
    gitconfig = temp_dir / "gitconfig"
    gitconfig.write_text(
        "[user]\n"
        "\tname = Test User\n"
        "\temail = test@example.com\n"
        "[init]\n"
        "\tdefaultBranch = main\n"
        "[protocol \"file\"]\n"
        "\tallow = always\n"
        "[uploadpack]\n"
        "\tallowFilter = true\n"
        f"[url \"file://{github.root.as_posix()}/\"]\n"
        "\tinsteadOf = https://github.com/\n"
        f"\tinsteadOf = https://x-access-token:{quote(TEST_TOKEN, safe='')}@github.com/\n"
    )
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    return github


@pytest.fixture
def token() -> str:
    """Token matching the fake GitHub URL rewrite."""
    return TEST_TOKEN
