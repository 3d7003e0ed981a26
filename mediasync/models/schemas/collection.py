"""Smart collection schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediasync.models.schemas.media import ensure_utc, utcnow

__all__ = ["CollectionDraft", "CollectionPatch", "SmartCollection"]


class CollectionDraft(BaseModel):
    """Fields supplied when creating a collection."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    description: str | None = None
    media_ids: list[str] = Field(default_factory=list)
    filter_criteria: dict[str, Any] | None = None
    is_auto_generated: bool = False

    @field_validator("media_ids", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SmartCollection(CollectionDraft):
    """A user-curated or rule-based grouping of media items.

    ``media_ids`` are weak references and may point at deleted items.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class CollectionPatch(BaseModel):
    """Partial update of a collection."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    media_ids: list[str] | None = None
    filter_criteria: dict[str, Any] | None = None
    is_auto_generated: bool | None = None

    def changes(self) -> dict[str, Any]:
        """Fields that were explicitly provided."""
        return self.model_dump(exclude_unset=True)
