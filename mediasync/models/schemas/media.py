"""Media item schemas shared by the stores, the coordinator and the web API."""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mediasync.utils.types import BaseStrEnum

__all__ = [
    "MediaDraft",
    "MediaItem",
    "MediaPatch",
    "MediaStatus",
    "MediaType",
    "StreamingPlatform",
    "normalize_title",
    "utcnow",
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def normalize_title(title: str) -> str:
    """Lowercase a title and strip everything except ASCII letters and digits.

    Args:
        title (str): The display title

    Returns:
        str: The normalized title used for searching and sorting
    """
    return _NON_ALNUM.sub("", title.lower())


class MediaType(BaseStrEnum):
    """Kinds of media that can be tracked."""

    MOVIE = "movie"
    SHOW = "show"
    ANIME = "anime"
    MANGA = "manga"
    MANHWA = "manhwa"
    MANHUA = "manhua"
    DONGHUA = "donghua"
    GAME = "game"
    BOOK = "book"
    LIGHT_NOVEL = "light_novel"
    VISUAL_NOVEL = "visual_novel"
    WEB_SERIES = "web_series"
    MISC = "misc"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"tv": "show"}


class MediaStatus(BaseStrEnum):
    """Consumption status of a media item."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"
    REWATCHING = "rewatching"
    ARCHIVED = "archived"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"watching": "in_progress"}


class StreamingPlatform(BaseModel):
    """Where a title can be watched."""

    platform: str
    type: str = "subscription"
    url: str | None = None


class _MediaFields(BaseModel):
    """User-editable media fields shared by drafts and stored items."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    type: MediaType = MediaType.MISC
    status: MediaStatus = MediaStatus.PLANNED

    progress: int = Field(default=0, ge=0)
    total_units: int = Field(default=0, ge=0)
    completion_percent: float = Field(default=0.0, ge=0, le=100)

    is_favorite: bool = False
    is_archived: bool = False

    notes: str | None = None
    user_rating: float | None = Field(default=None, ge=0, le=10)
    api_rating: float | None = None
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    studios: list[str] = Field(default_factory=list)
    description: str | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    release_year: int | None = None
    streaming_platforms: list[StreamingPlatform] = Field(default_factory=list)

    tmdb_id: int | None = None
    mal_id: int | None = None
    rawg_id: int | None = None
    google_books_id: str | None = None

    @field_validator("genres", "tags", "studios", "streaming_platforms", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("total_units", "progress", mode="before")
    @classmethod
    def _none_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class MediaDraft(_MediaFields):
    """Fields supplied by the application when adding a new item."""


class MediaItem(_MediaFields):
    """A tracked media item.

    ``id`` is a client generated UUID and never changes once assigned.
    ``normalized_title`` is derived from ``title`` on every validation.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    normalized_title: str = ""

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    @field_validator("created_at", "updated_at", "completed_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _derive_normalized_title(self) -> MediaItem:
        self.normalized_title = normalize_title(self.title)
        return self

    def with_derived_fields(self, now: datetime | None = None) -> MediaItem:
        """Return a copy with progress, completion and timestamps recomputed.

        Args:
            now (datetime | None): The write time used to stamp ``completed_at``.

        Returns:
            MediaItem: A new instance; ``self`` is not modified.
        """
        item = self.model_copy(deep=True)
        item.normalized_title = normalize_title(item.title)

        if item.type == MediaType.GAME:
            # Game progress is already a percentage
            item.progress = min(max(item.progress, 0), 100)
            item.completion_percent = float(item.progress)
        elif item.total_units > 0:
            item.progress = min(max(item.progress, 0), item.total_units)
            item.completion_percent = round(item.progress / item.total_units * 100, 2)

        if item.status == MediaStatus.COMPLETED and item.completed_at is None:
            item.completed_at = now or utcnow()
        return item


class MediaPatch(BaseModel):
    """Partial update of a media item. Only explicitly set fields are applied."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    type: MediaType | None = None
    status: MediaStatus | None = None
    progress: int | None = Field(default=None, ge=0)
    total_units: int | None = Field(default=None, ge=0)
    completion_percent: float | None = Field(default=None, ge=0, le=100)
    is_favorite: bool | None = None
    is_archived: bool | None = None
    notes: str | None = None
    user_rating: float | None = Field(default=None, ge=0, le=10)
    api_rating: float | None = None
    genres: list[str] | None = None
    tags: list[str] | None = None
    studios: list[str] | None = None
    description: str | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    release_year: int | None = None
    streaming_platforms: list[StreamingPlatform] | None = None
    tmdb_id: int | None = None
    mal_id: int | None = None
    rawg_id: int | None = None
    google_books_id: str | None = None
    completed_at: datetime | None = None

    def changes(self) -> dict[str, Any]:
        """Fields that were explicitly provided, in python mode."""
        return self.model_dump(exclude_unset=True)
