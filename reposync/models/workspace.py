"""Models for temporary clone workspaces."""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class WorkspaceStatus(str, Enum):
    """Lifecycle of a workspace directory."""

    ACTIVE = "active"
    CLEANUP = "cleanup"
    DISPOSED = "disposed"


class WorkspaceConfig(BaseModel):
    """Where workspaces are created and how they are named."""

    base_dir: Path | None = Field(
        default=None,
        description="Parent directory for workspaces (None = system temp)",
    )
    prefix: str = Field(default="repo-sync-", description="Default directory name prefix")


class WorkspaceInfo(BaseModel):
    """One temporary directory holding a source or target clone."""

    name: str = Field(description="Directory name, unique under the parent")
    path: Path = Field(description="Absolute path of the directory")
    repo: str | None = Field(default=None, description="Repository (owner/repo) cloned into it")
    status: WorkspaceStatus = WorkspaceStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now)

    def mark_cleanup(self) -> None:
        self.status = WorkspaceStatus.CLEANUP

    def mark_disposed(self) -> None:
        self.status = WorkspaceStatus.DISPOSED
