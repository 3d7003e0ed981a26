"""History event schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediasync.models.schemas.media import ensure_utc, utcnow
from mediasync.utils.types import BaseStrEnum

__all__ = ["HistoryAction", "HistoryEvent"]


class HistoryAction(BaseStrEnum):
    """Kinds of events recorded in the append-only history log."""

    ADDED = "added"
    UPDATED = "updated"
    STATUS_CHANGE = "status_change"
    PROGRESS_UPDATE = "progress_update"
    FAVORITED = "favorited"
    UNFAVORITED = "unfavorited"
    ARCHIVED = "archived"
    UNARCHIVED = "unarchived"
    DELETED = "deleted"


class HistoryEvent(BaseModel):
    """A single immutable history entry.

    ``media_id`` is a weak reference: the event outlives the media item.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    media_id: str
    action_type: HistoryAction
    value: dict[str, Any] | None = None
    previous_value: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)
