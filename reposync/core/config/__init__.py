"""Configuration management for reposync."""

from reposync.core.config.loader import ConfigLoader
from reposync.core.config.settings import (
    GitHubSettings,
    GitSettings,
    LoggingSettings,
    Settings,
    WorkspaceSettings,
    get_settings,
)


def get_github_token() -> str | None:
    """Get the GitHub token from settings or the environment.

    Returns:
        GitHub token or None.
    """
    return get_settings().github.resolve_token()


__all__ = [
    "ConfigLoader",
    "Settings",
    "WorkspaceSettings",
    "GitSettings",
    "GitHubSettings",
    "LoggingSettings",
    "get_settings",
    "get_github_token",
]
