"""Application settings using Pydantic Settings."""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reposync.core.config.loader import ConfigLoader

# Checked in order after REPOSYNC_GITHUB_TOKEN
TOKEN_ENV_VARS = ("GH_INSTALLATION_TOKEN", "GH_PAT", "GITHUB_TOKEN")


class WorkspaceSettings(BaseSettings):
    """Temporary workspace configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="REPOSYNC_WORKSPACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_dir: Path | None = Field(
        default=None,
        description="Parent directory for temporary checkouts (system temp dir if unset)",
    )
    source_prefix: str = Field(
        default="repo-sync-source-",
        description="Directory name prefix for source checkouts",
    )
    target_prefix: str = Field(
        default="repo-sync-target-",
        description="Directory name prefix for target working copies",
    )

    @field_validator("base_dir", mode="before")
    @classmethod
    def validate_base_dir(cls, v: str | None) -> Path | None:
        """Validate and convert base_dir to Path."""
        if v is None or v == "":
            return None
        return Path(v)


class GitSettings(BaseSettings):
    """Git identity and clone configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="REPOSYNC_GIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_email: str = Field(
        default="github-actions[bot]@users.noreply.github.com",
        description="Committer email written into each target working copy",
    )
    user_name: str = Field(
        default="github-actions[bot]",
        description="Committer name written into each target working copy",
    )
    source_depth: int = Field(
        default=1,
        ge=1,
        description="Clone depth for the source repository",
    )
    sparse_checkout: bool = Field(
        default=False,
        description="Use a cone-mode sparse checkout for the source repository",
    )


class GitHubSettings(BaseSettings):
    """GitHub REST API configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="REPOSYNC_GITHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    token: str | None = Field(
        default=None,
        description="Token used for git transport and REST calls",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retry attempts for transport failures and 5xx responses",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial retry delay in seconds (doubled per attempt)",
    )

    def resolve_token(self) -> str | None:
        """Return the configured token, falling back to the well-known env vars.

        Priority:
        1. REPOSYNC_GITHUB_TOKEN (or the ``token`` field)
        2. GH_INSTALLATION_TOKEN
        3. GH_PAT
        4. GITHUB_TOKEN

        Returns:
            Token or None.
        """
        if self.token:
            return self.token
        for name in TOKEN_ENV_VARS:
            value = os.environ.get(name)
            if value:
                return value
        return None


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="REPOSYNC_LOGGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = Field(
        default="INFO",
        description="Log level",
    )
    format: str = Field(
        default="[%(name)s] %(message)s",
        description="Log format string",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    use_rich: bool = Field(
        default=True,
        description="Use Rich console for output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("file", mode="before")
    @classmethod
    def validate_file(cls, v: str | None) -> Path | None:
        """Validate and convert file to Path."""
        if v is None or v == "":
            return None
        return Path(v)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="REPOSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Settings instance with values from YAML.
        """
        loader = ConfigLoader(path)
        loader.load()

        return cls(
            workspace=WorkspaceSettings(**loader.get_section("workspace")),
            git=GitSettings(**loader.get_section("git")),
            github=GitHubSettings(**loader.get_section("github")),
            logging=LoggingSettings(**loader.get_section("logging")),
        )

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from an optional YAML file or the environment.

        Priority: Environment variables > .env > YAML file > defaults

        Args:
            path: YAML file; REPOSYNC_CONFIG is consulted when omitted.

        Returns:
            Settings instance.
        """
        config_path = path or os.environ.get("REPOSYNC_CONFIG")
        if config_path and Path(config_path).exists():
            return cls.from_yaml(Path(config_path))

        return cls()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings singleton.
    """
    return Settings.load()
