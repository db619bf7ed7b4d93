"""Commit models for sqlrev."""

from typing import Any, Dict, List, Optional
from pydantic import Field, field_validator

from sqlrev.models.base import SqlRevBaseModel, SqlRevRecordModel
from sqlrev.models.change import DatabaseChange


class Author(SqlRevBaseModel):
    """Person or process credited with a commit."""

    name: str = Field(description="Display name")
    email: str = Field(default="", description="Email address")
    user_id: Optional[str] = Field(default=None, description="External user id")


class Commit(SqlRevRecordModel):
    """An immutable, named group of changes appended to a branch."""

    connection_id: str = Field(description="Connection the commit belongs to")
    message: str = Field(description="Commit message")
    author: Author = Field(description="Commit author")
    changes: List[DatabaseChange] = Field(
        default_factory=list, description="Changes in application order"
    )
    snapshot: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional point-in-time snapshot"
    )
    branch_name: str = Field(description="Branch the commit was made on")
    parent_id: Optional[str] = Field(
        default=None, description="Previous head of the branch"
    )
    reverts: List[str] = Field(
        default_factory=list, description="Ids of commits undone by this commit"
    )

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Commit message cannot be empty")
        return v

    @property
    def short_id(self) -> str:
        return self.id[:8]
