"""Temporary checkout directories and their lifetimes."""

import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from reposync.core.config.settings import get_settings
from reposync.core.exceptions.errors import WorkspaceError
from reposync.core.logger.logger import get_logger
from reposync.models.sync import CloneHandle
from reposync.models.workspace import WorkspaceConfig, WorkspaceInfo, WorkspaceStatus

logger = get_logger(__name__)


class WorkspaceManager:
    """Tracks the temporary directories that hold source and target clones.

    Each workspace is a fresh ``mkdtemp`` directory under the configured base
    (or the system temp dir). Removal is keyed by name so a handle can be
    released any number of times from any exit path.
    """

    def __init__(self, config: WorkspaceConfig | None = None) -> None:
        self.config = config or WorkspaceConfig(base_dir=get_settings().workspace.base_dir)
        self._workspaces: dict[str, WorkspaceInfo] = {}

    @property
    def active_count(self) -> int:
        """Number of workspaces whose directory is still in use."""
        return len([ws for ws in self._workspaces.values() if ws.status == WorkspaceStatus.ACTIVE])

    @property
    def workspaces(self) -> dict[str, WorkspaceInfo]:
        return dict(self._workspaces)

    def create(self, prefix: str | None = None, repo: str | None = None) -> WorkspaceInfo:
        """Create an empty workspace directory.

        Args:
            prefix: Directory name prefix, e.g. ``repo-sync-source-``.
            repo: Repository the workspace will hold.

        Returns:
            WorkspaceInfo for the created workspace.

        Raises:
            WorkspaceError: If the directory cannot be created.
        """
        parent = self.config.base_dir
        try:
            if parent is not None:
                parent.mkdir(parents=True, exist_ok=True)
            path = Path(tempfile.mkdtemp(prefix=prefix or self.config.prefix, dir=parent)).resolve()
        except OSError as e:
            raise WorkspaceError(
                f"Failed to create workspace under {parent or tempfile.gettempdir()}",
                details={"error": str(e), "repo": repo},
            ) from e

        info = WorkspaceInfo(name=path.name, path=path, status=WorkspaceStatus.ACTIVE, repo=repo)
        self._workspaces[info.name] = info
        logger.debug(f"Created workspace {info.name} for {repo or 'unknown repo'}")
        return info

    def handle(self, info: WorkspaceInfo, path: Path) -> CloneHandle:
        """Wrap a path inside ``info`` in a handle whose release removes the workspace."""
        return CloneHandle(
            path=path,
            root=info.path,
            repo=info.repo,
            release=lambda: self.release(info.name),
        )

    def get(self, name: str) -> WorkspaceInfo | None:
        return self._workspaces.get(name)

    def cleanup(self, name: str) -> bool:
        """Remove a workspace directory and forget it.

        A directory that cannot be removed is logged and still forgotten.

        Args:
            name: Workspace name.

        Returns:
            True once the workspace is disposed.

        Raises:
            WorkspaceError: If no workspace has that name.
        """
        info = self._workspaces.pop(name, None)
        if info is None:
            raise WorkspaceError(f"Workspace not found: {name}", workspace_name=name)

        info.mark_cleanup()
        try:
            if info.path.exists():
                shutil.rmtree(info.path)
        except OSError as e:
            logger.warning(f"Could not remove workspace {info.path}: {e}")
        info.mark_disposed()

        logger.debug(f"Removed workspace {name}")
        return True

    def release(self, name: str) -> None:
        """Clean up ``name`` if it is still tracked; later calls do nothing."""
        if name in self._workspaces:
            self.cleanup(name)

    def cleanup_all(self) -> int:
        """Remove every tracked workspace.

        Returns:
            Number of workspaces removed.
        """
        names = list(self._workspaces)
        for name in names:
            self.cleanup(name)
        if names:
            logger.debug(f"Removed {len(names)} leftover workspaces")
        return len(names)

    @contextmanager
    def workspace(
        self,
        prefix: str | None = None,
        repo: str | None = None,
    ) -> Generator[WorkspaceInfo, None, None]:
        """Yield a new workspace and remove it however the block exits."""
        info = self.create(prefix, repo)
        try:
            yield info
        finally:
            self.release(info.name)

    def __enter__(self) -> "WorkspaceManager":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.cleanup_all()
