"""Durable queue of remote writes awaiting confirmation."""

from __future__ import annotations

from sqlalchemy import delete, func, select, update

from mediasync import log
from mediasync.config.database import MediaSyncDB
from mediasync.core.local_store import session_scope
from mediasync.exceptions import MutationNotFoundError
from mediasync.models.db import MutationRecord
from mediasync.models.schemas.media import utcnow
from mediasync.models.schemas.mutation import (
    MutationMessage,
    MutationOperation,
    MutationState,
    SyncCollection,
)

__all__ = ["MutationQueue"]


def _to_message(record: MutationRecord) -> MutationMessage:
    return MutationMessage.model_validate(record.model_dump())


class MutationQueue:
    """FIFO log of writes that have not been confirmed by the remote store.

    Delivery is at-least-once: a message is only removed after the remote write
    was confirmed, and removing a message that is already gone is a no-op.
    Messages rejected too often move to the ``dead`` state and stop being drained
    until they are requeued.
    """

    def __init__(self, db: MediaSyncDB) -> None:
        """Initialize the queue.

        Args:
            db (MediaSyncDB): The database manager holding the queue table
        """
        self.db = db

    def append(self, message: MutationMessage) -> str:
        """Durably enqueue a message.

        Returns:
            str: The message id
        """
        with session_scope(self.db, "enqueue mutation") as session:
            record = MutationRecord(**message.model_dump(exclude={"seq"}))
            session.add(record)
        log.debug(f"Queued $$'{message}'$$ ($$'{message.id}'$$)")
        return message.id

    def drain(self) -> list[MutationMessage]:
        """Pending messages in enqueue order. The messages are not removed."""
        with session_scope(self.db, "drain queue") as session:
            rows = session.scalars(
                select(MutationRecord)
                .where(MutationRecord.state == MutationState.PENDING)
                .order_by(MutationRecord.enqueued_at.asc(), MutationRecord.seq.asc())
            ).all()
            return [_to_message(row) for row in rows]

    def get(self, message_id: str) -> MutationMessage | None:
        """Return a message by id, in any state."""
        with session_scope(self.db, "load mutation") as session:
            row = session.scalar(
                select(MutationRecord).where(MutationRecord.id == message_id)
            )
            return _to_message(row) if row is not None else None

    def remove(self, message_id: str) -> bool:
        """Remove a delivered message.

        Returns:
            bool: False if the message was already removed
        """
        with session_scope(self.db, "remove mutation") as session:
            result = session.execute(
                delete(MutationRecord).where(MutationRecord.id == message_id)
            )
            return bool(result.rowcount)

    def record_failure(
        self, message_id: str, error: str, dead_after: int = 0
    ) -> MutationMessage | None:
        """Count a rejected delivery attempt.

        Args:
            message_id (str): The message that failed
            error (str): Error description stored on the message
            dead_after (int): Attempts after which the message is dead-lettered;
                0 never dead-letters

        Returns:
            MutationMessage | None: The updated message, or None if it is gone
        """
        with session_scope(self.db, "record mutation failure") as session:
            row = session.scalar(
                select(MutationRecord).where(MutationRecord.id == message_id)
            )
            if row is None:
                return None
            row.attempts = (row.attempts or 0) + 1
            row.last_error = error
            row.last_attempt_at = utcnow()
            if dead_after > 0 and row.attempts >= dead_after:
                row.state = MutationState.DEAD
                log.warning(
                    f"Moved $$'{row.operation} {row.collection}/{row.target_id}'$$ "
                    f"to dead letters after {row.attempts} rejected attempts: {error}"
                )
            session.flush()
            return _to_message(row)

    def pending_count(self) -> int:
        """Number of messages waiting for delivery."""
        return self._count(MutationState.PENDING)

    def dead_count(self) -> int:
        """Number of dead-lettered messages."""
        return self._count(MutationState.DEAD)

    def _count(self, state: MutationState) -> int:
        with session_scope(self.db, "count queue") as session:
            return (
                session.scalar(
                    select(func.count())
                    .select_from(MutationRecord)
                    .where(MutationRecord.state == state)
                )
                or 0
            )

    def pending_target_ids(
        self,
        collection: SyncCollection,
        operation: MutationOperation | None = None,
        include_dead: bool = False,
    ) -> set[str]:
        """Target ids of pending messages, optionally limited to one operation.

        With ``include_dead`` dead-lettered messages are included as well.
        """
        states = [MutationState.PENDING]
        if include_dead:
            states.append(MutationState.DEAD)
        stmt = select(MutationRecord.target_id).where(
            MutationRecord.state.in_(states),
            MutationRecord.collection == collection,
        )
        if operation is not None:
            stmt = stmt.where(MutationRecord.operation == operation)
        with session_scope(self.db, "load pending targets") as session:
            return set(session.scalars(stmt).all())

    def has_pending(self, collection: SyncCollection, target_id: str) -> bool:
        """Whether a pending message exists for the given target."""
        with session_scope(self.db, "check pending target") as session:
            return (
                session.scalar(
                    select(MutationRecord.seq)
                    .where(
                        MutationRecord.state == MutationState.PENDING,
                        MutationRecord.collection == collection,
                        MutationRecord.target_id == target_id,
                    )
                    .limit(1)
                )
                is not None
            )

    def dead_letters(self) -> list[MutationMessage]:
        """Dead-lettered messages in enqueue order."""
        with session_scope(self.db, "load dead letters") as session:
            rows = session.scalars(
                select(MutationRecord)
                .where(MutationRecord.state == MutationState.DEAD)
                .order_by(MutationRecord.enqueued_at.asc(), MutationRecord.seq.asc())
            ).all()
            return [_to_message(row) for row in rows]

    def requeue(self, message_id: str | None = None) -> int:
        """Move dead letters back to pending and reset their attempt counters.

        Args:
            message_id (str | None): A single message to requeue, or None for all

        Returns:
            int: Number of requeued messages

        Raises:
            MutationNotFoundError: If a specific id was given but is not dead
        """
        stmt = (
            update(MutationRecord)
            .where(MutationRecord.state == MutationState.DEAD)
            .values(state=MutationState.PENDING, attempts=0, last_error=None)
        )
        if message_id is not None:
            stmt = stmt.where(MutationRecord.id == message_id)
        with session_scope(self.db, "requeue dead letters") as session:
            count = session.execute(stmt).rowcount or 0
        if message_id is not None and count == 0:
            raise MutationNotFoundError(f"No dead letter with id '{message_id}'")
        if count:
            log.info(f"Requeued {count} dead-lettered mutation(s)")
        return count

    def discard(self, message_id: str) -> MutationMessage:
        """Drop a message without delivering it.

        Returns:
            MutationMessage: The discarded message

        Raises:
            MutationNotFoundError: If the message does not exist
        """
        message = self.get(message_id)
        if message is None:
            raise MutationNotFoundError(f"No queued mutation with id '{message_id}'")
        self.remove(message_id)
        log.warning(f"Discarded queued mutation $$'{message}'$$")
        return message
