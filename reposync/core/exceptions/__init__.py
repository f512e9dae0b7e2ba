"""Exception definitions module."""

from reposync.core.exceptions.errors import (
    BranchResolutionError,
    CloneError,
    CommitError,
    ConfigurationError,
    GitError,
    GitHubAPIError,
    InvalidStateError,
    PushError,
    ReposyncError,
    SourceNotFoundError,
    SubpathNotFoundError,
    ValidationError,
    WorkspaceError,
)

__all__ = [
    "ReposyncError",
    "ValidationError",
    "ConfigurationError",
    "WorkspaceError",
    "SourceNotFoundError",
    "GitError",
    "CloneError",
    "SubpathNotFoundError",
    "BranchResolutionError",
    "CommitError",
    "PushError",
    "InvalidStateError",
    "GitHubAPIError",
]
