"""
Audit record published to the audit topic.

Field names follow the audit stream's wire format (camelCase JSON).
"""

import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuditAction(str, enum.Enum):
    UPLOADED = "FILE_UPLOADED"
    DELETED = "FILE_DELETED"


ACTIVITY_TYPE = "FILE_STORAGE_ACTIVITY"
ENTITY_TYPE = "MEDIA_FILE"


class AuditRecord(BaseModel):
    """A single audit event for a stored media object."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str = Field(alias="userId")
    activity_type: str = Field(default=ACTIVITY_TYPE, alias="activityType")
    action: AuditAction
    entity_type: str = Field(default=ENTITY_TYPE, alias="entityType")
    entity_id: str | None = Field(default=None, alias="entityId")
    trip_id: str | None = Field(default=None, alias="tripId")
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )

    @classmethod
    def for_object(cls, action: AuditAction, user_id: str, key: str) -> "AuditRecord":
        return cls(
            user_id=user_id,
            action=action,
            metadata={"filename": key, "entityType": ENTITY_TYPE},
        )

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")
