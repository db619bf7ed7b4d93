"""Change record models for sqlrev."""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import Field

from sqlrev.models.base import SqlRevRecordModel
from sqlrev.utils.sql_tokens import statement_label


MANUAL = "MANUAL"
"""Marker stored in ``rollback_sql`` when no safe inverse statement exists."""


class ChangeType(str, Enum):
    """Broad category of a database mutation."""

    SCHEMA = "SCHEMA"
    DATA = "DATA"
    ACL = "ACL"
    SYSTEM = "SYSTEM"


class ChangeOperation(str, Enum):
    """Operation performed by a database mutation."""

    CREATE = "CREATE"
    ALTER = "ALTER"
    DROP = "DROP"
    RENAME = "RENAME"
    TRUNCATE = "TRUNCATE"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    GRANT = "GRANT"
    REVOKE = "REVOKE"


class ChangeStatus(str, Enum):
    """Whether a committed change is still in effect."""

    APPLIED = "APPLIED"
    REVERTED = "REVERTED"


class DatabaseChange(SqlRevRecordModel):
    """One classified mutation with its forward and inverse SQL."""

    type: ChangeType = Field(description="Category of the change")
    operation: ChangeOperation = Field(description="Operation performed")
    target: str = Field(description="Name of the affected object")
    description: str = Field(description="Human readable summary")
    query: str = Field(description="Original statement text")
    rollback_sql: str = Field(
        default=MANUAL, description="Inverse statement, or MANUAL"
    )
    status: ChangeStatus = Field(
        default=ChangeStatus.APPLIED, description="Applied or reverted"
    )
    table_name: Optional[str] = Field(default=None, description="Affected table")
    affected_rows: Optional[int] = Field(
        default=None, description="Rows affected, when known"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Captured state used for synthesis"
    )
    inverse_of: Optional[str] = Field(
        default=None, description="Id of the change this record undoes"
    )

    @property
    def requires_manual_rollback(self) -> bool:
        return self.rollback_sql.strip() == MANUAL

    @property
    def is_reverted(self) -> bool:
        return self.status == ChangeStatus.REVERTED

    @property
    def label(self) -> str:
        """Short statement label such as ``DROP TABLE orders``."""
        return statement_label(self.query, self.target)
