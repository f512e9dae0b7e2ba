"""Target repository controller.

Takes one target repository from nothing to a pushed sync branch:

    UNINITIALIZED -> CLONED -> BRANCH_READY -> COMMITTED -> PUSHED

A controller is single-use. Its working copy lives in a temporary
workspace that is removed by ``cleanup()`` or when ``setup()`` fails.
"""

from collections.abc import Callable, Sequence
from pathlib import Path

from git import Repo
from git.exc import GitCommandError

from reposync.core.config.settings import get_settings
from reposync.core.exceptions.errors import (
    BranchResolutionError,
    GitError,
    InvalidStateError,
    ValidationError,
)
from reposync.core.logger.logger import get_logger
from reposync.models.sync import FileSpec, RepoReference
from reposync.models.target import BranchStage, BranchState
from reposync.propagation.copier import Copier, resolve_source
from reposync.propagation.git_operations import GitOperations
from reposync.propagation.workspace import WorkspaceManager

logger = get_logger(__name__)

BranchStrategy = Callable[[Repo, RepoReference, str], None]


class TargetController:
    """Branch state machine for a single target repository."""

    def __init__(
        self,
        token: str,
        git_email: str,
        git_username: str,
        workspace_manager: WorkspaceManager | None = None,
        copier: Copier | None = None,
        prefix: str | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            token: Access token for clone, probe, fetch and push.
            git_email: Committer email.
            git_username: Committer name.
            workspace_manager: Manager for temporary directories.
            copier: File copier.
            prefix: Workspace name prefix.
        """
        if not token:
            raise ValidationError("token is required", field="token")

        self.git_ops = GitOperations(token)
        self.git_email = git_email
        self.git_username = git_username
        self.workspace_manager = workspace_manager or WorkspaceManager()
        self.copier = copier or Copier()
        self.prefix = prefix or get_settings().workspace.target_prefix

        self._state = BranchState()
        self._repo: Repo | None = None
        self._repo_ref: RepoReference | None = None
        self._workspace_name: str | None = None
        self.resolved_strategy: str | None = None

    @property
    def state(self) -> BranchState:
        return self._state

    @property
    def working_dir(self) -> Path | None:
        return self._state.working_dir if self._workspace_name else None

    @property
    def strategies(self) -> list[tuple[str, BranchStrategy]]:
        """Branch resolution strategies, tried in order."""
        return [
            ("create", self._create_branch),
            ("checkout-local", self._checkout_local),
            ("fetch-remote", self._fetch_remote),
        ]

    def setup(self, repo: str, branch_name: str, base_ref: str | None = None) -> BranchState:
        """Clone the target and put the sync branch in place.

        Args:
            repo: Target repository in owner/repo format.
            branch_name: Sync branch to create or reuse.
            base_ref: Branch to clone; the remote default branch if not provided.

        Returns:
            BRANCH_READY state.

        Raises:
            InvalidStateError: If the controller was already set up.
            ValidationError: If an input is malformed.
            CloneError: If cloning fails.
            BranchResolutionError: If no strategy could provide the branch.
        """
        if self._state.stage != BranchStage.UNINITIALIZED:
            raise InvalidStateError(self._state.stage.value, "setup")
        repo_ref = RepoReference.parse(repo)
        if not branch_name or not branch_name.strip():
            raise ValidationError("branch_name is required", field="branch_name")
        base_ref = base_ref.strip() if base_ref and base_ref.strip() else None

        info = self.workspace_manager.create(prefix=self.prefix, repo=repo_ref.full_name)
        self._workspace_name = info.name
        working_dir = info.path / "repo"

        try:
            git_repo = self.git_ops.clone(repo_ref, working_dir, depth=1, ref=base_ref)
            self._repo = git_repo
            self._repo_ref = repo_ref
            self.git_ops.configure_identity(git_repo, self.git_email, self.git_username)

            state = BranchState().advance(
                BranchStage.CLONED,
                repo=repo_ref.full_name,
                working_dir=working_dir,
                branch_name=branch_name,
                base_branch=base_ref or self.git_ops.current_branch(git_repo),
            )
            self._state = state

            self.resolved_strategy = self._resolve_branch(git_repo, repo_ref, branch_name)
            state = state.advance(BranchStage.BRANCH_READY)
        except BaseException:
            self.cleanup()
            raise

        self._state = state
        logger.info(f"{repo_ref}: branch {branch_name} ready via {self.resolved_strategy}")
        return state

    def _resolve_branch(self, repo: Repo, repo_ref: RepoReference, branch_name: str) -> str:
        attempted: list[str] = []
        for name, strategy in self.strategies:
            attempted.append(name)
            try:
                strategy(repo, repo_ref, branch_name)
                return name
            except (GitCommandError, GitError) as e:
                logger.debug(f"Branch strategy '{name}' failed for {branch_name}: {self.git_ops.redact(str(e))}")

        raise BranchResolutionError(branch_name, attempted, repo=repo_ref.full_name)

    def _create_branch(self, repo: Repo, repo_ref: RepoReference, branch_name: str) -> None:
        if branch_name in repo.heads:
            raise GitError(f"Branch exists locally: {branch_name}", git_ref=branch_name)
        if self.git_ops.remote_branch_exists(repo, repo_ref, branch_name):
            raise GitError(f"Branch exists on origin: {branch_name}", git_ref=branch_name)
        self.git_ops.create_branch(repo, branch_name)

    def _checkout_local(self, repo: Repo, repo_ref: RepoReference, branch_name: str) -> None:
        self.git_ops.checkout_local_branch(repo, branch_name)

    def _fetch_remote(self, repo: Repo, repo_ref: RepoReference, branch_name: str) -> None:
        self.git_ops.fetch_remote_branch(repo, repo_ref, branch_name)

    def sync_files(
        self,
        state: BranchState,
        specs: Sequence[FileSpec],
        source_root: Path | str | None = None,
    ) -> list[str]:
        """Copy every spec into the working copy.

        Args:
            state: Current state; must be BRANCH_READY or later.
            specs: File specs, applied in order.
            source_root: Directory that relative file spec sources are resolved against.

        Returns:
            Concatenated changed paths, in file spec order, without de-duplication.

        Raises:
            InvalidStateError: If the branch is not ready.
            ValidationError: If a source leaves ``source_root``.
        """
        state.require(BranchStage.BRANCH_READY, "sync_files")
        if self.working_dir is None or state.working_dir is None:
            raise InvalidStateError("released", "sync_files")

        changed: list[str] = []
        for spec in specs:
            source = resolve_source(source_root, spec.source) if source_root else spec.source
            changed.extend(self.copier.sync_path(source, state.working_dir, spec.dest))
        return changed

    def commit_and_push(self, state: BranchState, message: str, body: str | None = None) -> BranchState:
        """Commit every change and force-push the sync branch.

        Args:
            state: Current state; must be BRANCH_READY.
            message: Commit subject.
            body: Optional commit body.

        Returns:
            The unchanged state with ``committed=False`` when there was nothing
            to commit, otherwise the PUSHED state carrying ``commit_id``.

        Raises:
            InvalidStateError: If the branch is not ready.
            CommitError: If committing fails.
            PushError: If pushing fails.
        """
        state.require(BranchStage.BRANCH_READY, "commit_and_push")
        if self._repo is None or self._repo_ref is None or self.working_dir is None:
            raise InvalidStateError("released", "commit_and_push")

        if not self.git_ops.has_changes(self._repo):
            logger.info(f"{self._repo_ref}: nothing to commit")
            return state.model_copy(update={"committed": False, "pushed": False})

        commit_id = self.git_ops.commit_all(self._repo, self._repo_ref, message, body)
        state = state.advance(BranchStage.COMMITTED, committed=True, commit_id=commit_id)
        self._state = state

        self.git_ops.push(self._repo, self._repo_ref, state.branch_name)
        state = state.advance(BranchStage.PUSHED, pushed=True)
        self._state = state
        return state

    def cleanup(self) -> None:
        """Remove the working copy. Safe before setup and when repeated."""
        if self._workspace_name is None:
            return
        name = self._workspace_name
        self._workspace_name = None
        if self._repo is not None:
            self._repo.close()
            self._repo = None
        self.workspace_manager.release(name)

    def __enter__(self) -> "TargetController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
