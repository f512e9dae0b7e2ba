"""Source repository provider.

Materializes a path of the source repository as a disposable checkout.
"""

from reposync.core.config.settings import get_settings
from reposync.core.exceptions.errors import SubpathNotFoundError, ValidationError
from reposync.core.logger.logger import get_logger
from reposync.models.sync import CloneHandle, RepoReference
from reposync.propagation.git_operations import GitOperations
from reposync.propagation.workspace import WorkspaceManager

logger = get_logger(__name__)


class SourceProvider:
    """Clones the source repository into a temporary workspace."""

    def __init__(
        self,
        workspace_manager: WorkspaceManager | None = None,
        prefix: str | None = None,
    ) -> None:
        """Initialize the source provider.

        Args:
            workspace_manager: Manager for temporary directories.
            prefix: Workspace name prefix.
        """
        self.workspace_manager = workspace_manager or WorkspaceManager()
        self.prefix = prefix or get_settings().workspace.source_prefix

    def materialize(
        self,
        repo: str,
        sub_path: str,
        token: str,
        ref: str | None = None,
        depth: int = 1,
        sparse: bool = False,
    ) -> CloneHandle:
        """Clone ``repo`` and return a handle on ``sub_path``.

        Args:
            repo: Repository in owner/repo format.
            sub_path: Path inside the repository (``.`` for the root).
            token: Access token.
            ref: Branch or tag to check out; the default branch if not provided.
            depth: Shallow clone depth.
            sparse: Check out only ``sub_path`` (cone mode).

        Returns:
            CloneHandle whose release removes the whole temporary root.

        Raises:
            ValidationError: If an input is malformed (raised before any I/O).
            CloneError: If cloning or sparse checkout fails.
            SubpathNotFoundError: If ``sub_path`` is missing after checkout.
        """
        repo_ref = RepoReference.parse(repo)
        if not sub_path or not sub_path.strip():
            raise ValidationError("path is required", field="path")
        if not token:
            raise ValidationError("token is required", field="token")
        if depth < 1:
            raise ValidationError("depth must be a positive integer", field="depth", details={"value": depth})
        ref = ref.strip() if ref and ref.strip() else None

        git_ops = GitOperations(token)
        info = self.workspace_manager.create(prefix=self.prefix, repo=repo_ref.full_name)
        clone_dir = info.path / "repo"

        try:
            git_repo = git_ops.clone(repo_ref, clone_dir, depth=depth, ref=ref, sparse=sparse)
            if sparse:
                git_ops.sparse_checkout(git_repo, repo_ref, sub_path, ref=ref)

            abs_path = (clone_dir / sub_path).resolve()
            if not abs_path.exists():
                raise SubpathNotFoundError(sub_path, repo=repo_ref.full_name)
        except BaseException:
            self.workspace_manager.release(info.name)
            raise

        logger.info(f"Materialized {repo_ref}:{sub_path} at {abs_path}")
        return self.workspace_manager.handle(info, abs_path)

    def materialize_whole_repo(self, repo: str, token: str, ref: str | None = None) -> CloneHandle:
        """Clone the entire repository (no sparse checkout).

        Args:
            repo: Repository in owner/repo format.
            token: Access token.
            ref: Branch or tag to check out.

        Returns:
            CloneHandle whose path is the repository root.
        """
        return self.materialize(repo, ".", token, ref=ref, sparse=False)
