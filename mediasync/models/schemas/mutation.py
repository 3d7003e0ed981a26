"""Mutation queue schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediasync.models.schemas.media import ensure_utc, utcnow
from mediasync.utils.types import BaseStrEnum

__all__ = [
    "MutationMessage",
    "MutationOperation",
    "MutationState",
    "SyncCollection",
]


class SyncCollection(BaseStrEnum):
    """Logical collections that are replicated to the remote store."""

    MEDIA = "media"
    SMART_COLLECTIONS = "smart_collections"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {
            "collections": "smart_collections",
            "smartcollections": "smart_collections",
        }


class MutationOperation(BaseStrEnum):
    """Remote write kinds. All of them are idempotent under replay."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class MutationState(BaseStrEnum):
    """Delivery state of a queued mutation."""

    PENDING = "pending"
    DEAD = "dead"


class MutationMessage(BaseModel):
    """A remote write that has not been confirmed yet.

    The payload is fixed at enqueue time; only the bookkeeping fields
    (``state``, ``attempts``, ``last_error``, ``last_attempt_at``) change.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    collection: SyncCollection
    operation: MutationOperation
    target_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    enqueued_at: datetime = Field(default_factory=utcnow)
    seq: int | None = None

    state: MutationState = MutationState.PENDING
    attempts: int = 0
    last_error: str | None = None
    last_attempt_at: datetime | None = None

    @field_validator("enqueued_at", "last_attempt_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    def __str__(self) -> str:
        return f"{self.operation} {self.collection}/{self.target_id}"
