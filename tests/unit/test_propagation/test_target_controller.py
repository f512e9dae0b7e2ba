"""Tests for the target branch state machine against local bare repositories."""

import shutil
from pathlib import Path
from urllib.parse import quote

import pytest
from git import Repo

from reposync.core.exceptions.errors import (
    BranchResolutionError,
    CloneError,
    InvalidStateError,
    PushError,
    SourceNotFoundError,
    ValidationError,
)
from reposync.models.sync import FileSpec
from reposync.models.target import BranchStage, BranchState
from reposync.propagation.target import TargetController
from reposync.propagation.workspace import WorkspaceManager

TARGET = "acme/service"


@pytest.fixture
def target_repo(fake_github):
    fake_github.create_repo(TARGET, {"README.md": "# service\n", ".github/CODEOWNERS": "* @acme/old\n"})
    return fake_github


@pytest.fixture
def controller(token: str, workspace_manager: WorkspaceManager):
    ctrl = TargetController(
        token,
        "bot@example.com",
        "Sync Bot",
        workspace_manager=workspace_manager,
    )
    yield ctrl
    ctrl.cleanup()


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    src = temp_dir / "source"
    (src / "templates").mkdir(parents=True)
    (src / "templates" / "CODEOWNERS").write_text("* @acme/platform\n")
    (src / "README.md").write_text("# service\n")
    return src


def assert_no_token(text: str, token: str) -> None:
    assert token not in text
    assert quote(token, safe="") not in text


class TestConstruction:
    """Tests for controller construction and input validation."""

    def test_empty_token_rejected(self, workspace_manager: WorkspaceManager) -> None:
        with pytest.raises(ValidationError):
            TargetController("", "bot@example.com", "Sync Bot", workspace_manager=workspace_manager)

    def test_initial_state(self, controller: TargetController) -> None:
        assert controller.state.stage == BranchStage.UNINITIALIZED
        assert controller.working_dir is None
        assert [name for name, _ in controller.strategies] == ["create", "checkout-local", "fetch-remote"]

    def test_bad_repo_fails_before_any_io(
        self, controller: TargetController, workspace_manager: WorkspaceManager
    ) -> None:
        with pytest.raises(ValidationError, match="owner/repo"):
            controller.setup("not-a-repo", "sync/branch")

        assert workspace_manager.workspaces == {}

    def test_blank_branch_rejected(self, controller: TargetController) -> None:
        with pytest.raises(ValidationError):
            controller.setup(TARGET, "  ")


class TestSetup:
    """Tests for cloning and branch resolution."""

    def test_new_branch_is_created(self, target_repo, controller: TargetController) -> None:
        state = controller.setup(TARGET, "sync/templates/2024-01-01")

        assert state.stage == BranchStage.BRANCH_READY
        assert state.repo == TARGET
        assert state.base_branch == "main"
        assert controller.resolved_strategy == "create"
        assert (state.working_dir / "README.md").exists()

    def test_existing_remote_branch_is_fetched(self, target_repo, controller: TargetController) -> None:
        target_repo.push_branch(TARGET, "sync/existing", {"previous.txt": "earlier run\n"})

        state = controller.setup(TARGET, "sync/existing")

        assert controller.resolved_strategy == "fetch-remote"
        assert (state.working_dir / "previous.txt").read_text() == "earlier run\n"

    def test_existing_local_branch_is_checked_out(self, target_repo, controller: TargetController) -> None:
        controller.setup(TARGET, "main")

        assert controller.resolved_strategy == "checkout-local"

    def test_base_ref_selects_cloned_branch(self, target_repo, controller: TargetController) -> None:
        target_repo.push_branch(TARGET, "develop", {"dev.txt": "dev\n"})

        state = controller.setup(TARGET, "sync/from-develop", base_ref="develop")

        assert state.base_branch == "develop"
        assert (state.working_dir / "dev.txt").exists()

    def test_unresolvable_branch_lists_attempts_and_cleans_up(
        self,
        target_repo,
        controller: TargetController,
        workspace_manager: WorkspaceManager,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test the cloned repository is closed and removed when no strategy works."""
        closed: list[Repo] = []
        close = Repo.close

        def record_close(repo: Repo) -> None:
            closed.append(repo)
            close(repo)

        monkeypatch.setattr(Repo, "close", record_close)

        with pytest.raises(BranchResolutionError) as exc_info:
            controller.setup(TARGET, "bad..name")

        assert exc_info.value.attempted == ["create", "checkout-local", "fetch-remote"]
        assert len(closed) == 1
        assert workspace_manager.workspaces == {}
        assert controller.working_dir is None

    def test_missing_repo_raises_clone_error_and_cleans_up(
        self, fake_github, controller: TargetController, workspace_manager: WorkspaceManager, token: str
    ) -> None:
        with pytest.raises(CloneError) as exc_info:
            controller.setup("acme/missing", "sync/branch")

        assert_no_token(str(exc_info.value), token)
        assert exc_info.value.__cause__ is None
        assert workspace_manager.workspaces == {}

    def test_setup_twice_rejected(self, target_repo, controller: TargetController) -> None:
        controller.setup(TARGET, "sync/once")

        with pytest.raises(InvalidStateError):
            controller.setup(TARGET, "sync/once")

    def test_origin_never_holds_token(self, target_repo, controller: TargetController, token: str) -> None:
        state = controller.setup(TARGET, "sync/clean-origin")

        config = (state.working_dir / ".git" / "config").read_text()
        assert_no_token(config, token)
        assert "https://github.com/acme/service.git" in config


class TestSyncAndPush:
    """Tests for copying, committing and pushing."""

    def test_sync_commit_and_push(
        self, target_repo, controller: TargetController, source_dir: Path, token: str
    ) -> None:
        state = controller.setup(TARGET, "sync/codeowners")
        specs = [FileSpec(source="templates/CODEOWNERS", dest=".github/CODEOWNERS")]

        changed = controller.sync_files(state, specs, source_root=source_dir)
        assert changed == [".github/CODEOWNERS"]

        state = controller.commit_and_push(state, "🔄 Sync CODEOWNERS", body="From acme/templates")

        assert state.stage == BranchStage.PUSHED
        assert state.committed is True
        assert state.pushed is True
        assert "sync/codeowners" in target_repo.branches(TARGET)
        assert target_repo.read_file(TARGET, "sync/codeowners", ".github/CODEOWNERS") == "* @acme/platform"
        message = target_repo.head_message(TARGET, "sync/codeowners")
        assert message.startswith("🔄 Sync CODEOWNERS\n\nFrom acme/templates")

        config = (state.working_dir / ".git" / "config").read_text()
        assert_no_token(config, token)

    def test_commit_uses_configured_identity(self, target_repo, controller: TargetController, source_dir: Path) -> None:
        state = controller.setup(TARGET, "sync/identity")
        controller.sync_files(state, [FileSpec(source="templates/CODEOWNERS", dest="CODEOWNERS")], source_dir)
        state = controller.commit_and_push(state, "Sync")

        commit = Repo(target_repo.bare_path(TARGET)).commit("sync/identity")
        assert commit.hexsha == state.commit_id
        assert commit.author.email == "bot@example.com"
        assert commit.author.name == "Sync Bot"

    def test_unchanged_content_commits_nothing(
        self, target_repo, controller: TargetController, source_dir: Path
    ) -> None:
        state = controller.setup(TARGET, "sync/noop")

        changed = controller.sync_files(state, [FileSpec(source="README.md", dest="README.md")], source_dir)
        result = controller.commit_and_push(state, "Sync README")

        assert changed == []
        assert result.committed is False
        assert result.pushed is False
        assert result.stage == BranchStage.BRANCH_READY
        assert "sync/noop" not in target_repo.branches(TARGET)

    def test_rerun_force_pushes_over_existing_branch(
        self, target_repo, controller: TargetController, source_dir: Path
    ) -> None:
        target_repo.push_branch(TARGET, "sync/rerun", {"stale.txt": "stale\n"})
        state = controller.setup(TARGET, "sync/rerun")
        controller.sync_files(state, [FileSpec(source="templates/CODEOWNERS", dest="CODEOWNERS")], source_dir)

        state = controller.commit_and_push(state, "Sync again")

        assert state.pushed is True
        assert target_repo.read_file(TARGET, "sync/rerun", "CODEOWNERS") == "* @acme/platform"

    def test_changed_paths_are_not_deduplicated(
        self, target_repo, controller: TargetController, source_dir: Path
    ) -> None:
        (source_dir / "other").mkdir()
        (source_dir / "other" / "CODEOWNERS").write_text("* @acme/other\n")
        state = controller.setup(TARGET, "sync/twice")
        specs = [
            FileSpec(source="templates/CODEOWNERS", dest="CODEOWNERS"),
            FileSpec(source="other/CODEOWNERS", dest="CODEOWNERS"),
        ]

        assert controller.sync_files(state, specs, source_dir) == ["CODEOWNERS", "CODEOWNERS"]

    def test_absolute_source_is_read_from_checkout(
        self, target_repo, controller: TargetController, source_dir: Path
    ) -> None:
        state = controller.setup(TARGET, "sync/absolute")

        changed = controller.sync_files(state, [FileSpec(source="/templates/CODEOWNERS", dest="CODEOWNERS")], source_dir)

        assert changed == ["CODEOWNERS"]
        assert (state.working_dir / "CODEOWNERS").read_text() == "* @acme/platform\n"

    def test_host_file_outside_checkout_is_never_copied(
        self, target_repo, controller: TargetController, source_dir: Path, temp_dir: Path
    ) -> None:
        """Test absolute, parent-relative and glob sources cannot read outside the checkout."""
        host_file = temp_dir / "host-secret.txt"
        host_file.write_text("do not publish\n")
        state = controller.setup(TARGET, "sync/escape")

        with pytest.raises(SourceNotFoundError):
            controller.sync_files(state, [FileSpec(source=str(host_file), dest="leak.txt")], source_dir)
        with pytest.raises(ValidationError, match="escapes the source checkout"):
            controller.sync_files(state, [FileSpec(source="../host-secret.txt", dest="leak.txt")], source_dir)
        with pytest.raises(ValidationError, match="escapes the source checkout"):
            controller.sync_files(state, [FileSpec(source="../*.txt", dest="leaks")], source_dir)

        assert not (state.working_dir / "leak.txt").exists()
        assert not (state.working_dir / "leaks").exists()

    def test_push_failure_is_redacted_and_origin_sanitized(
        self, target_repo, controller: TargetController, source_dir: Path, token: str
    ) -> None:
        state = controller.setup(TARGET, "sync/push-fails")
        controller.sync_files(state, [FileSpec(source="templates/CODEOWNERS", dest="CODEOWNERS")], source_dir)
        shutil.rmtree(target_repo.bare_path(TARGET))

        with pytest.raises(PushError) as exc_info:
            controller.commit_and_push(state, "Sync")

        assert_no_token(str(exc_info.value), token)
        assert controller.state.stage == BranchStage.COMMITTED
        assert_no_token((state.working_dir / ".git" / "config").read_text(), token)


class TestStateGuards:
    """Tests for operations attempted out of order."""

    def test_sync_before_setup(self, controller: TargetController) -> None:
        with pytest.raises(InvalidStateError):
            controller.sync_files(BranchState(), [FileSpec(source="a", dest="a")])

    def test_commit_before_setup(self, controller: TargetController) -> None:
        with pytest.raises(InvalidStateError):
            controller.commit_and_push(BranchState(), "Sync")

    def test_sync_after_cleanup(self, target_repo, controller: TargetController, source_dir: Path) -> None:
        state = controller.setup(TARGET, "sync/after-cleanup")
        controller.cleanup()

        with pytest.raises(InvalidStateError):
            controller.sync_files(state, [FileSpec(source="README.md", dest="README.md")], source_dir)


class TestCleanup:
    """Tests for working copy removal."""

    def test_cleanup_removes_working_copy(
        self, target_repo, controller: TargetController, workspace_manager: WorkspaceManager
    ) -> None:
        state = controller.setup(TARGET, "sync/cleanup")
        workspace_root = state.working_dir.parent

        controller.cleanup()

        assert not workspace_root.exists()
        assert workspace_manager.workspaces == {}
        assert controller.working_dir is None

    def test_cleanup_is_idempotent(self, target_repo, controller: TargetController) -> None:
        controller.setup(TARGET, "sync/idempotent")
        controller.cleanup()
        controller.cleanup()

    def test_cleanup_before_setup(self, controller: TargetController) -> None:
        controller.cleanup()

    def test_context_manager_cleans_up(self, target_repo, token: str, workspace_manager: WorkspaceManager) -> None:
        with TargetController(token, "bot@example.com", "Sync Bot", workspace_manager=workspace_manager) as ctrl:
            state = ctrl.setup(TARGET, "sync/context")
            assert state.working_dir.exists()

        assert not state.working_dir.exists()
