"""Git operations wrapper with credential hygiene.

Every call that talks to the remote receives the authenticated URL as a
plain argument for that single invocation. The ``origin`` remote only ever
stores the token-free URL, and every error raised from here has the token
redacted.
"""

from pathlib import Path
from typing import Any
from urllib.parse import quote

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from reposync.core.exceptions.errors import (
    CloneError,
    CommitError,
    GitError,
    PushError,
)
from reposync.core.logger.logger import REDACTED, get_logger, register_secret
from reposync.models.sync import RepoReference

logger = get_logger(__name__)

# Never prompt for credentials; a missing or bad token must fail fast
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "GIT_ASKPASS": "/bin/true"}


class GitOperations:
    """Handles clone, branch, commit and push operations for one token."""

    def __init__(self, token: str) -> None:
        """Initialize Git operations.

        Args:
            token: Access token used for authenticated remote calls.
        """
        self.token = token
        register_secret(token)

    def redact(self, text: str) -> str:
        """Remove the token (raw and URL-encoded) from a string.

        Args:
            text: Text that may contain the token.

        Returns:
            Text with every occurrence replaced.
        """
        if not self.token:
            return text
        for secret in {self.token, quote(self.token, safe="")}:
            text = text.replace(secret, REDACTED)
        return text

    def _git_error(
        self,
        error_cls: type[GitError],
        message: str,
        error: Exception,
        repo: RepoReference | None = None,
        git_ref: str | None = None,
    ) -> GitError:
        """Build a redacted GitError from a GitPython failure."""
        detail = error.stderr if isinstance(error, GitCommandError) and error.stderr else str(error)
        return error_cls(
            message,
            repo=str(repo) if repo else None,
            git_ref=git_ref,
            details={"error": self.redact(str(detail).strip())},
        )

    def _prepare(self, repo: Repo) -> Repo:
        repo.git.update_environment(**GIT_ENV)
        return repo

    def clone(
        self,
        repo_ref: RepoReference,
        target_path: Path,
        depth: int = 1,
        ref: str | None = None,
        sparse: bool = False,
    ) -> Repo:
        """Shallow clone a repository and sanitize its origin.

        Args:
            repo_ref: Repository to clone.
            target_path: Local path to clone into.
            depth: Clone depth.
            ref: Branch or tag to clone as a single branch.
            sparse: Clone without blobs and without checking out files.

        Returns:
            Cloned Repo object with a token-free origin.

        Raises:
            CloneError: If the clone fails.
        """
        logger.info(f"Cloning {repo_ref} (depth={depth}{', ref=' + ref if ref else ''})")

        clone_kwargs: dict[str, Any] = {
            "depth": depth,
            "no_tags": True,
        }
        if ref:
            clone_kwargs["branch"] = ref
            clone_kwargs["single_branch"] = True
        if sparse:
            clone_kwargs["filter"] = "blob:none"
            clone_kwargs["no_checkout"] = True

        try:
            repo = Repo.clone_from(
                repo_ref.clone_url(self.token),
                str(target_path),
                env=GIT_ENV,
                **clone_kwargs,
            )
        except GitCommandError as e:
            # Not chained: the GitCommandError holds the authenticated command line
            raise self._git_error(CloneError, f"Failed to clone {repo_ref}", e, repo_ref, ref) from None

        self._prepare(repo)
        self.sanitize_origin(repo, repo_ref)
        return repo

    def sanitize_origin(self, repo: Repo, repo_ref: RepoReference) -> None:
        """Point origin at the token-free URL.

        Args:
            repo: Repo object.
            repo_ref: Repository the working copy belongs to.
        """
        repo.remote("origin").set_url(repo_ref.sanitized_url)

    def default_branch(self, repo: Repo) -> str | None:
        """Resolve the remote default branch from ``origin/HEAD``.

        Args:
            repo: Repo object.

        Returns:
            Branch name, or the current branch when origin/HEAD is not set.
        """
        try:
            origin_head = repo.git.rev_parse("--abbrev-ref", "origin/HEAD").strip()
        except GitCommandError:
            origin_head = ""
        if origin_head.startswith("origin/"):
            return origin_head[len("origin/"):]
        return self.current_branch(repo)

    def current_branch(self, repo: Repo) -> str | None:
        """Return the checked out branch, or None when HEAD is detached."""
        if repo.head.is_detached:
            return None
        return repo.active_branch.name

    def sparse_checkout(
        self,
        repo: Repo,
        repo_ref: RepoReference,
        sub_path: str,
        ref: str | None = None,
    ) -> None:
        """Restrict the working tree to ``sub_path`` and check out files.

        Args:
            repo: Repo cloned with ``sparse=True``.
            repo_ref: Repository being checked out.
            sub_path: Directory to keep (cone mode).
            ref: Branch or tag; the remote default branch if not provided.

        Raises:
            CloneError: If sparse checkout or checkout fails.
        """
        try:
            repo.git.sparse_checkout("init", "--cone")
            repo.git.sparse_checkout("set", sub_path)
            target = ref or self.default_branch(repo)
            if target:
                repo.git.checkout(target, force=True)
        except GitCommandError as e:
            raise self._git_error(
                CloneError, f"Sparse checkout of {sub_path} failed", e, repo_ref, ref
            ) from e

    def configure_identity(self, repo: Repo, email: str, name: str) -> None:
        """Write committer identity into the working copy config.

        Args:
            repo: Repo object.
            email: Committer email.
            name: Committer name.
        """
        with repo.config_writer() as config:
            config.set_value("user", "email", email)
            config.set_value("user", "name", name)
            config.set_value("commit", "gpgsign", "false")

    def remote_branch_exists(self, repo: Repo, repo_ref: RepoReference, branch: str) -> bool:
        """Probe the remote for a branch without persisting the credential.

        Args:
            repo: Repo object.
            repo_ref: Repository to probe.
            branch: Branch name.

        Returns:
            True if ``refs/heads/<branch>`` exists on the remote.
        """
        output = repo.git.ls_remote("--heads", repo_ref.clone_url(self.token), f"refs/heads/{branch}")
        return bool(output.strip())

    def create_branch(self, repo: Repo, branch: str) -> None:
        """Create and check out a new local branch from the current checkout."""
        repo.git.checkout("-b", branch)

    def checkout_local_branch(self, repo: Repo, branch: str) -> None:
        """Check out an existing local branch.

        Raises:
            GitError: If the branch does not exist locally.
        """
        if branch not in repo.heads:
            raise GitError(f"Local branch not found: {branch}", git_ref=branch)
        repo.heads[branch].checkout()

    def fetch_remote_branch(self, repo: Repo, repo_ref: RepoReference, branch: str) -> None:
        """Fetch a remote branch into ``origin/<branch>`` and check it out locally.

        A shallow clone is single-branch, so an explicit refspec is required.
        """
        refspec = f"+refs/heads/{branch}:refs/remotes/origin/{branch}"
        repo.git.fetch(repo_ref.clone_url(self.token), refspec, "--depth=1", "--no-tags")
        repo.git.checkout("-b", branch, f"origin/{branch}")

    def has_changes(self, repo: Repo) -> bool:
        """Return True when the porcelain status has any entry."""
        return bool(repo.git.status("--porcelain").strip())

    def commit_all(
        self,
        repo: Repo,
        repo_ref: RepoReference,
        message: str,
        body: str | None = None,
    ) -> str:
        """Stage everything and commit.

        Args:
            repo: Repo object.
            repo_ref: Repository being committed to.
            message: Commit subject.
            body: Optional commit body, separated by a blank line.

        Returns:
            Commit SHA.

        Raises:
            CommitError: If staging or committing fails.
        """
        full_message = f"{message}\n\n{body}" if body else message
        try:
            repo.git.add("-A")
            repo.git.commit("-m", full_message)
        except GitCommandError as e:
            raise self._git_error(CommitError, f"Failed to commit to {repo_ref}", e, repo_ref) from e
        return repo.head.commit.hexsha

    def push(self, repo: Repo, repo_ref: RepoReference, branch: str) -> None:
        """Force-push a branch using the authenticated URL, then re-sanitize origin.

        Args:
            repo: Repo object.
            repo_ref: Repository to push to.
            branch: Branch to push.

        Raises:
            PushError: If the push fails.
        """
        logger.info(f"Pushing {branch} to {repo_ref}")
        try:
            repo.git.push("--force", repo_ref.clone_url(self.token), f"{branch}:refs/heads/{branch}")
        except GitCommandError as e:
            raise self._git_error(PushError, f"Failed to push {branch} to {repo_ref}", e, repo_ref, branch) from None
        finally:
            self.sanitize_origin(repo, repo_ref)

    def get_origin_url(self, repo: Repo) -> str:
        """Return the persisted origin URL."""
        return repo.remote("origin").url

    def open_repo(self, path: Path) -> Repo:
        """Open an existing Git repository.

        Args:
            path: Path to the repository.

        Returns:
            Repo object.

        Raises:
            GitError: If repository cannot be opened.
        """
        try:
            return self._prepare(Repo(path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise GitError(
                f"Not a valid Git repository: {path}",
                details={"path": str(path), "error": str(e)},
            ) from e
