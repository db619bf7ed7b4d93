"""Revert and rollback outcome models for sqlrev."""

from enum import Enum
from typing import List, Optional
from pydantic import Field

from sqlrev.models.base import SqlRevBaseModel
from sqlrev.models.commit import Commit


class RevertState(str, Enum):
    """Phases of a revert or rollback operation."""

    REQUESTED = "REQUESTED"
    VALIDATING = "VALIDATING"
    SYNTHESIZING = "SYNTHESIZING"
    EXECUTING = "EXECUTING"
    RECORDED = "RECORDED"
    FAILED = "FAILED"


class RevertOutcome(SqlRevBaseModel):
    """Result of a revert or rollback.

    For a dry run ``commit`` is None and ``statements`` lists what would run.
    """

    operation: str = Field(description="'revert' or 'rollback'")
    state: RevertState = Field(description="Final phase reached")
    target: Commit = Field(description="Reverted commit or rollback target")
    commit: Optional[Commit] = Field(
        default=None, description="New commit recording the inverse changes"
    )
    statements: List[str] = Field(
        default_factory=list, description="Inverse statements in execution order"
    )
    dry_run: bool = Field(default=False)
