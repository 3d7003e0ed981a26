"""Sync status and backup document schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from mediasync.models.schemas.collection import SmartCollection
from mediasync.models.schemas.media import MediaItem, utcnow

__all__ = ["EXPORT_VERSION", "ExportDocument", "SyncStatus"]

EXPORT_VERSION = 1


class SyncStatus(BaseModel):
    """Point-in-time view of the synchronization machinery."""

    online: bool
    syncing: bool = False
    pending_count: int = 0
    dead_count: int = 0
    last_synced_at: datetime | None = None


class ExportDocument(BaseModel):
    """Full dump of the local library used for backup and restore."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    version: int = EXPORT_VERSION
    exported_at: datetime = Field(default_factory=utcnow)
    media: list[MediaItem]
    collections: list[SmartCollection] = Field(
        default_factory=list,
        validation_alias=AliasChoices("collections", "smartCollections"),
    )
