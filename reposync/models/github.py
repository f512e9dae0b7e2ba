"""GitHub REST payload models."""

from typing import Any

from pydantic import BaseModel, Field


class PullRequest(BaseModel):
    """The subset of a pull request payload reposync relies on."""

    number: int = Field(description="Pull request number")
    html_url: str = Field(description="Browser URL")
    title: str = Field(default="")
    body: str | None = Field(default=None)
    state: str = Field(default="open")
    head_ref: str = Field(default="", description="Head branch")
    base_ref: str = Field(default="", description="Base branch")
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "PullRequest":
        """Build from a ``pulls`` API payload.

        Args:
            payload: Decoded JSON object.

        Returns:
            PullRequest.
        """
        return cls(
            number=payload["number"],
            html_url=payload["html_url"],
            title=payload.get("title") or "",
            body=payload.get("body"),
            state=payload.get("state") or "open",
            head_ref=(payload.get("head") or {}).get("ref", ""),
            base_ref=(payload.get("base") or {}).get("ref", ""),
            labels=[label["name"] for label in payload.get("labels") or []],
            assignees=[user["login"] for user in payload.get("assignees") or []],
        )
