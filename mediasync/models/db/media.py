"""Media Database Model."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
)

from mediasync.models.db.base import Base
from mediasync.models.schemas.media import MediaStatus, MediaType

__all__ = ["MediaRecord"]


class MediaRecord(Base):
    """Row of the local ``media`` table."""

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, index=True)
    normalized_title: Mapped[str] = mapped_column(String, index=True)
    type: Mapped[MediaType] = mapped_column(Enum(MediaType), index=True)
    status: Mapped[MediaStatus] = mapped_column(Enum(MediaStatus), index=True)

    progress: Mapped[int] = mapped_column(Integer, default=0, index=True)
    total_units: Mapped[int] = mapped_column(Integer, default=0)
    completion_percent: Mapped[float] = mapped_column(Float, default=0.0, index=True)

    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_rating: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    api_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    genres: Mapped[list[str]] = mapped_column(JSON, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    studios: Mapped[list[str]] = mapped_column(JSON, default=list)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    poster_url: Mapped[str | None] = mapped_column(String, nullable=True)
    backdrop_url: Mapped[str | None] = mapped_column(String, nullable=True)
    release_year: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )
    streaming_platforms: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list
    )

    tmdb_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mal_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rawg_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    google_books_id: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
