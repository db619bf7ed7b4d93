"""Branch model for sqlrev."""

from datetime import datetime
from typing import Any, Optional
from pydantic import Field, field_serializer, field_validator

from sqlrev.models.base import SqlRevBaseModel, utc_now
from sqlrev.utils.name_validator import validate_branch_name


DEFAULT_BRANCH = "main"


class Branch(SqlRevBaseModel):
    """A named pointer to the head of one linear history."""

    name: str = Field(description="Branch name")
    head_commit_id: Optional[str] = Field(
        default=None, description="Commit the branch points to"
    )
    protected: bool = Field(
        default=False, description="Whether the branch can be deleted or renamed"
    )
    created_from: Optional[str] = Field(
        default=None, description="Branch that was checked out when this was created"
    )
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def validate_name_field(cls, v: str) -> str:
        """Validate branch name meets naming requirements."""
        validate_branch_name(v)
        return v

    @field_serializer("created_at")
    def serialize_datetime(self, dt: Optional[datetime], _info: Any) -> Optional[str]:
        return dt.isoformat() if dt else None

    def can_delete(self) -> bool:
        """Check if this branch can be deleted or renamed."""
        return not self.protected and self.name != DEFAULT_BRANCH
