"""Target working copy state models."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from reposync.core.exceptions.errors import InvalidStateError


class BranchStage(str, Enum):
    """Lifecycle stage of a target working copy, in order."""

    UNINITIALIZED = "uninitialized"
    CLONED = "cloned"
    BRANCH_READY = "branch_ready"
    COMMITTED = "committed"
    PUSHED = "pushed"

    @property
    def order(self) -> int:
        return list(BranchStage).index(self)


class BranchState(BaseModel):
    """Immutable snapshot of a target working copy."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    stage: BranchStage = Field(default=BranchStage.UNINITIALIZED)
    repo: str | None = Field(default=None, description="Target repository (owner/repo)")
    working_dir: Path | None = Field(default=None, description="Working copy root")
    branch_name: str | None = Field(default=None, description="Sync branch")
    base_branch: str | None = Field(
        default=None,
        description="Branch checked out by the clone (the default branch unless a base ref was given)",
    )
    committed: bool = Field(default=False)
    pushed: bool = Field(default=False)
    commit_id: str | None = Field(default=None)

    def advance(self, stage: BranchStage, **changes: Any) -> "BranchState":
        """Return a copy moved forward to ``stage``.

        Args:
            stage: Next stage; must come strictly after the current one.
            **changes: Other fields to update.

        Returns:
            New BranchState.

        Raises:
            InvalidStateError: If the transition does not move forward.
        """
        if stage.order <= self.stage.order:
            raise InvalidStateError(self.stage.value, stage.value)
        return self.model_copy(update={**changes, "stage": stage})

    def require(self, minimum: BranchStage, action: str) -> None:
        """Raise unless the state has reached ``minimum``.

        Args:
            minimum: Earliest stage at which ``action`` is allowed.
            action: Requested operation, for the error message.

        Raises:
            InvalidStateError: If the current stage is earlier than ``minimum``.
        """
        if self.stage.order < minimum.order:
            raise InvalidStateError(self.stage.value, action)
