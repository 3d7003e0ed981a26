"""Mutation Queue Database Model."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import Index
from sqlalchemy.sql.sqltypes import JSON, DateTime, Enum, Integer, String, Text

from mediasync.models.db.base import Base
from mediasync.models.schemas.mutation import (
    MutationOperation,
    MutationState,
    SyncCollection,
)

__all__ = ["MutationRecord"]


class MutationRecord(Base):
    """Row of the durable ``sync_queue`` table.

    ``seq`` breaks ties between messages enqueued within the same clock tick.
    """

    __tablename__ = "sync_queue"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String, unique=True, index=True)
    collection: Mapped[SyncCollection] = mapped_column(Enum(SyncCollection))
    operation: Mapped[MutationOperation] = mapped_column(Enum(MutationOperation))
    target_id: Mapped[str] = mapped_column(String, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    enqueued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )

    state: Mapped[MutationState] = mapped_column(
        Enum(MutationState), default=MutationState.PENDING, index=True
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_sync_queue_target", "collection", "target_id", "state"),
    )
