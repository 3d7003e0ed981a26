"""Smart Collection Database Model."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import JSON, Boolean, DateTime, String, Text

from mediasync.models.db.base import Base

__all__ = ["CollectionRecord"]


class CollectionRecord(Base):
    """Row of the local ``smart_collections`` table."""

    __tablename__ = "smart_collections"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    filter_criteria: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )
    is_auto_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )
