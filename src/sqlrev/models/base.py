"""Base models for sqlrev."""

from datetime import datetime, timezone
from typing import Any, Optional
import uuid
from pydantic import BaseModel, Field, ConfigDict, field_serializer


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SqlRevRecordModel(BaseModel):
    """Base model for stored records.

    Includes automatic id and timestamp fields.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="Unique identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now, description="Creation timestamp"
    )

    @field_serializer("timestamp")
    def serialize_datetime(self, dt: Optional[datetime], _info: Any) -> Optional[str]:
        """Serialize datetime to ISO format."""
        return dt.isoformat() if dt else None


class SqlRevBaseModel(BaseModel):
    """Base model for non-record entities (authors, results, state)."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )
