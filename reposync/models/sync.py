"""Sync-related data models."""

import re
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, RootModel, model_validator

from reposync.core.exceptions.errors import ValidationError

REPO_PATTERN = re.compile(r"^[^/]+/[^/]+$")
GITHUB_HOST = "github.com"


class RepoReference(BaseModel):
    """A validated ``owner/repo`` reference."""

    model_config = ConfigDict(frozen=True)

    full_name: str = Field(
        pattern=REPO_PATTERN.pattern,
        description="Repository in owner/repo format",
    )

    @classmethod
    def parse(cls, value: str, field: str = "repo") -> "RepoReference":
        """Validate a repository string.

        Args:
            value: Repository in owner/repo format.
            field: Input name reported on failure.

        Returns:
            RepoReference.

        Raises:
            ValidationError: If the value is not in owner/repo format.
        """
        if not isinstance(value, str) or not REPO_PATTERN.match(value):
            raise ValidationError(
                "repo must be in owner/repo format",
                field=field,
                details={"value": value},
            )
        return cls(full_name=value)

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/", 1)[1]

    @property
    def sanitized_url(self) -> str:
        """Token-free HTTPS remote URL."""
        return f"https://{GITHUB_HOST}/{self.full_name}.git"

    def clone_url(self, token: str) -> str:
        """Build the authenticated HTTPS URL for a single git invocation.

        Args:
            token: Access token; URL-encoded into the userinfo part.

        Returns:
            Authenticated URL. Never persist it.
        """
        return f"https://x-access-token:{quote(token, safe='')}@{GITHUB_HOST}/{self.full_name}.git"

    def __str__(self) -> str:
        return self.full_name


class FileSpec(BaseModel):
    """A source path in the source repo and its destination in a target repo.

    A bare string is accepted and means ``source == dest``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str = Field(min_length=1, description="Path, directory or glob in the source repo")
    dest: str = Field(min_length=1, description="Destination relative to the target root")

    @model_validator(mode="before")
    @classmethod
    def expand_shorthand(cls, data: Any) -> Any:
        """Expand a bare string into ``{source, dest}``."""
        if isinstance(data, str):
            return {"source": data, "dest": data}
        return data


class SyncConfig(RootModel[dict[str, list[FileSpec]]]):
    """Mapping of target ``owner/repo`` to the files it receives, in order."""

    @model_validator(mode="after")
    def check_non_empty(self) -> "SyncConfig":
        """Reject targets with an empty file list."""
        for repo, specs in self.root.items():
            if not specs:
                raise ValueError(f"{repo}: at least one file spec is required")
        return self

    @property
    def targets(self) -> dict[str, list[FileSpec]]:
        return self.root


class CloneHandle(BaseModel):
    """A disposable checkout: the requested path plus the temp root to remove.

    ``release()`` removes the whole temporary root. It is safe to call on
    every exit path; calls after the first do nothing.
    """

    path: Path = Field(description="Absolute path to the requested sub path")
    root: Path = Field(description="Temporary directory that owns the checkout")
    repo: str | None = Field(default=None, description="Repository checked out")

    _release: Callable[[], Any] | None = PrivateAttr(default=None)
    _released: bool = PrivateAttr(default=False)

    def __init__(self, release: Callable[[], Any] | None = None, **data: Any) -> None:
        super().__init__(**data)
        self._release = release

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Remove the temporary root. Idempotent and never raises."""
        if self._released:
            return
        self._released = True
        if self._release is not None:
            self._release()
        else:
            shutil.rmtree(self.root, ignore_errors=True)

    def __enter__(self) -> "CloneHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class SyncResult(BaseModel):
    """Outcome of syncing one target repository."""

    model_config = ConfigDict(frozen=True)

    target_repo: str = Field(description="Target repository (owner/repo)")
    files_changed: list[str] = Field(
        default_factory=list,
        description="Paths created or overwritten, relative to the target root",
    )
    pull_request_url: str | None = Field(default=None, description="URL of the created/updated PR")
    error: str | None = Field(default=None, description="Error message if the target failed")

    @property
    def succeeded(self) -> bool:
        return self.error is None


class WorkflowResult(BaseModel):
    """Outcome of a whole fan-out run."""

    model_config = ConfigDict(frozen=True)

    discovered_repos: list[str] = Field(default_factory=list)
    sync_results: list[SyncResult] = Field(default_factory=list)
    pull_request_urls: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> list[SyncResult]:
        """Results that carry an error."""
        return [r for r in self.sync_results if r.error is not None]


class RunOptions(BaseModel):
    """Options shared by both sync modes."""

    source_repo: str = Field(description="Source repository (owner/repo)")
    source_ref: str | None = Field(default=None, description="Branch or tag to sync from")
    branch_name: str | None = Field(default=None, description="Sync branch; generated when omitted")
    branch_prefix: str = Field(default="sync", description="Prefix for generated branch names")
    base_branch: str | None = Field(
        default=None,
        description="PR base branch; the target's default branch when omitted",
    )
    commit_prefix: str = Field(default="🔄", description="Prefix of the commit message")
    commit_body: str | None = Field(default=None, description="Commit message body")
    pr_title: str | None = Field(default=None, description="PR title; the commit message when omitted")
    pr_body: str = Field(default="", description="PR body")
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    reviewers: list[str] = Field(default_factory=list)
    team_reviewers: list[str] = Field(default_factory=list)
    dry_run: bool = Field(default=False, description="Copy and report, never commit or push")
    skip_pr: bool = Field(default=False, description="Push the branch but do not open a PR")


class SyncOptions(RunOptions):
    """One source path propagated to explicit or discovered targets."""

    source_path: str = Field(min_length=1, description="Path, directory or glob in the source repo")
    dest_path: str | None = Field(
        default=None,
        description="Destination in each target; basename of source_path (or '.' for globs) when omitted",
    )
    target_repos: list[str] | None = Field(default=None, description="Explicit target repositories")
    target_org: str | None = Field(default=None, description="Organization to search for targets")
    search_topics: list[str] = Field(default_factory=list, description="Topics every target must carry")


class ConfigSyncOptions(RunOptions):
    """Per-target file lists taken from a sync configuration."""

    sync_config: SyncConfig = Field(description="Target repository to file specs mapping")
