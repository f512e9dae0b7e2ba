"""Custom exception definitions for reposync."""

from typing import Any


class ReposyncError(Exception):
    """Base exception for all reposync errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(ReposyncError):
    """Raised when caller input is malformed, before any I/O happens."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error message.
            field: Name of the offending input.
            details: Additional error details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ConfigurationError(ReposyncError):
    """Exception raised for configuration errors."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Error message.
            config_key: Configuration key that caused the error.
            details: Additional error details.
        """
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details)


class WorkspaceError(ReposyncError):
    """Exception raised for workspace management errors."""

    def __init__(
        self,
        message: str,
        workspace_name: str | None = None,
        workspace_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize workspace error.

        Args:
            message: Error message.
            workspace_name: Name of the workspace.
            workspace_path: Path to the workspace.
            details: Additional error details.
        """
        details = details or {}
        if workspace_name:
            details["workspace_name"] = workspace_name
        if workspace_path:
            details["workspace_path"] = workspace_path
        super().__init__(message, details)


class SourceNotFoundError(ReposyncError):
    """Raised when a non-glob source path does not exist."""

    def __init__(self, source_path: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Source path not found: {source_path}", details)
        self.source_path = source_path


class GitError(ReposyncError):
    """Exception raised for Git operation errors."""

    def __init__(
        self,
        message: str,
        repo: str | None = None,
        git_ref: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize Git error.

        Args:
            message: Error message.
            repo: Repository (owner/repo) that caused the error.
            git_ref: Git reference (branch/tag/commit) involved.
            details: Additional error details.
        """
        details = details or {}
        if repo:
            details["repo"] = repo
        if git_ref:
            details["git_ref"] = git_ref
        super().__init__(message, details)


class CloneError(GitError):
    """Raised when a repository cannot be cloned or prepared after cloning."""


class SubpathNotFoundError(GitError):
    """Raised when the requested sub path is missing from a source checkout."""

    def __init__(
        self,
        sub_path: str,
        repo: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Subpath not found in source repo: {sub_path}", repo=repo, details=details)
        self.sub_path = sub_path


class BranchResolutionError(GitError):
    """Raised once every branch resolution strategy has failed."""

    def __init__(
        self,
        branch_name: str,
        attempted: list[str],
        repo: str | None = None,
    ) -> None:
        """Initialize branch resolution error.

        Args:
            branch_name: Branch that could not be resolved.
            attempted: Names of the strategies tried, in order.
            repo: Target repository.
        """
        super().__init__(
            f"Could not resolve branch '{branch_name}' (tried: {', '.join(attempted)})",
            repo=repo,
            git_ref=branch_name,
            details={"attempted": attempted},
        )
        self.branch_name = branch_name
        self.attempted = attempted


class CommitError(GitError):
    """Raised when staging or committing changes fails."""


class PushError(GitError):
    """Raised when pushing the sync branch fails."""


class InvalidStateError(ReposyncError):
    """Raised on a forbidden target state machine transition."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Invalid state transition: {current} -> {requested}",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class GitHubAPIError(ReposyncError):
    """Exception raised when a GitHub REST call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize GitHub API error.

        Args:
            message: Error message.
            status_code: HTTP status code, if a response was received.
            url: Request URL.
            details: Additional error details.
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.status_code = status_code
