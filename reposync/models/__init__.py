"""Data models module."""

from reposync.models.github import PullRequest
from reposync.models.sync import (
    CloneHandle,
    ConfigSyncOptions,
    FileSpec,
    RepoReference,
    RunOptions,
    SyncConfig,
    SyncOptions,
    SyncResult,
    WorkflowResult,
)
from reposync.models.target import BranchStage, BranchState
from reposync.models.workspace import WorkspaceConfig, WorkspaceInfo, WorkspaceStatus

__all__ = [
    "RepoReference",
    "FileSpec",
    "SyncConfig",
    "CloneHandle",
    "SyncResult",
    "WorkflowResult",
    "RunOptions",
    "SyncOptions",
    "ConfigSyncOptions",
    "BranchStage",
    "BranchState",
    "PullRequest",
    "WorkspaceConfig",
    "WorkspaceInfo",
    "WorkspaceStatus",
]
