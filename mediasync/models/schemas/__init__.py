"""Pydantic schemas for MediaSync."""

from mediasync.models.schemas.collection import (
    CollectionDraft,
    CollectionPatch,
    SmartCollection,
)
from mediasync.models.schemas.history import HistoryAction, HistoryEvent
from mediasync.models.schemas.media import (
    MediaDraft,
    MediaItem,
    MediaPatch,
    MediaStatus,
    MediaType,
    StreamingPlatform,
    normalize_title,
)
from mediasync.models.schemas.mutation import (
    MutationMessage,
    MutationOperation,
    MutationState,
    SyncCollection,
)
from mediasync.models.schemas.sync import EXPORT_VERSION, ExportDocument, SyncStatus

__all__ = [
    "EXPORT_VERSION",
    "CollectionDraft",
    "CollectionPatch",
    "ExportDocument",
    "HistoryAction",
    "HistoryEvent",
    "MediaDraft",
    "MediaItem",
    "MediaPatch",
    "MediaStatus",
    "MediaType",
    "MutationMessage",
    "MutationOperation",
    "MutationState",
    "SmartCollection",
    "StreamingPlatform",
    "SyncCollection",
    "SyncStatus",
    "normalize_title",
]
