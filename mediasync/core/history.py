"""Append-only history log."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select

from mediasync.config.database import MediaSyncDB
from mediasync.core.local_store import session_scope
from mediasync.models.db import HistoryRecord
from mediasync.models.schemas.history import HistoryEvent

__all__ = ["HistoryLog"]


def _to_event(record: HistoryRecord) -> HistoryEvent:
    return HistoryEvent.model_validate(record.model_dump())


class HistoryLog:
    """Local history of media events.

    Events are only ever inserted. Nothing but a full wipe removes them, and they
    are kept after the media item they reference has been deleted.
    """

    def __init__(self, db: MediaSyncDB) -> None:
        self.db = db

    def append(self, event: HistoryEvent) -> HistoryEvent:
        """Persist a new event."""
        with session_scope(self.db, "append history event") as session:
            session.add(HistoryRecord(**event.model_dump()))
        return event

    def for_media(self, media_id: str) -> list[HistoryEvent]:
        """Events of a single media item, newest first."""
        with session_scope(self.db, "load media history") as session:
            rows = session.scalars(
                select(HistoryRecord)
                .where(HistoryRecord.media_id == media_id)
                .order_by(HistoryRecord.created_at.desc())
            ).all()
            return [_to_event(row) for row in rows]

    def recent(self, limit: int = 50) -> list[HistoryEvent]:
        """The newest events across all media."""
        with session_scope(self.db, "load history") as session:
            rows = session.scalars(
                select(HistoryRecord)
                .order_by(HistoryRecord.created_at.desc())
                .limit(limit)
            ).all()
            return [_to_event(row) for row in rows]

    def count(self) -> int:
        """Total number of stored events."""
        with session_scope(self.db, "count history") as session:
            return session.scalar(select(func.count()).select_from(HistoryRecord)) or 0

    def insert_missing(self, events: Iterable[HistoryEvent]) -> int:
        """Insert events whose id is not stored yet; existing ones are untouched.

        Returns:
            int: Number of inserted events
        """
        incoming = {event.id: event for event in events}
        if not incoming:
            return 0

        with session_scope(self.db, "merge history") as session:
            existing = set(
                session.scalars(
                    select(HistoryRecord.id).where(HistoryRecord.id.in_(list(incoming)))
                ).all()
            )
            missing = [e for key, e in incoming.items() if key not in existing]
            session.add_all([HistoryRecord(**e.model_dump()) for e in missing])
        return len(missing)
