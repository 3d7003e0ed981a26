"""History Database Model."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import JSON, DateTime, Enum, String

from mediasync.models.db.base import Base
from mediasync.models.schemas.history import HistoryAction

__all__ = ["HistoryRecord"]


class HistoryRecord(Base):
    """Row of the append-only ``history`` table.

    ``media_id`` has no foreign key; events outlive their media item.
    """

    __tablename__ = "history"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    media_id: Mapped[str] = mapped_column(String, index=True)
    action_type: Mapped[HistoryAction] = mapped_column(Enum(HistoryAction), index=True)
    value: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    previous_value: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )
