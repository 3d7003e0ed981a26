"""On-device store for media items, collections and housekeeping values."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mediasync import log
from mediasync.config.database import MediaSyncDB
from mediasync.exceptions import (
    CollectionNotFoundError,
    LocalStoreError,
    MediaItemNotFoundError,
    UnsupportedQueryFieldError,
)
from mediasync.models.db import (
    CollectionRecord,
    HistoryRecord,
    Housekeeping,
    MediaRecord,
    MutationRecord,
)
from mediasync.models.schemas.collection import SmartCollection
from mediasync.models.schemas.media import (
    MediaItem,
    MediaStatus,
    MediaType,
    ensure_utc,
)

__all__ = ["QUERYABLE_FIELDS", "LocalStore", "session_scope"]

QUERYABLE_FIELDS = frozenset(
    {
        "title",
        "normalized_title",
        "type",
        "status",
        "is_favorite",
        "is_archived",
        "release_year",
        "progress",
        "completion_percent",
        "user_rating",
        "created_at",
        "updated_at",
        "completed_at",
    }
)


@contextmanager
def session_scope(db: MediaSyncDB, action: str) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on failure.

    Args:
        db (MediaSyncDB): The database to open the session against
        action (str): Short description used in the error message

    Raises:
        LocalStoreError: If SQLAlchemy raises while running the block
    """
    session = db.new_session()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise LocalStoreError(f"Local store failed to {action}: {e}") from e
    finally:
        session.close()


def _coerce_query_value(field: str, value: Any) -> Any:
    if value is None:
        return None
    try:
        if field == "type":
            return MediaType(value)
        if field == "status":
            return MediaStatus(value)
    except ValueError as e:
        raise UnsupportedQueryFieldError(f"Invalid {field} value '{value}'") from e
    if isinstance(value, datetime):
        return ensure_utc(value)
    return value


def _to_item(record: MediaRecord) -> MediaItem:
    return MediaItem.model_validate(record.model_dump())


def _to_collection(record: CollectionRecord) -> SmartCollection:
    return SmartCollection.model_validate(record.model_dump())


class LocalStore:
    """Durable local copy of the user's library.

    Every call is synchronous and independent of network state. Writes recompute
    the derived media fields (``normalized_title``, clamped ``progress``,
    ``completion_percent`` and ``completed_at``) before persisting.
    """

    def __init__(self, db: MediaSyncDB) -> None:
        """Initialize the store.

        Args:
            db (MediaSyncDB): The database manager backing the store
        """
        self.db = db

    # Media

    def get_all(self) -> list[MediaItem]:
        """Return every media item, most recently updated first."""
        with session_scope(self.db, "load media") as session:
            rows = session.scalars(
                select(MediaRecord).order_by(MediaRecord.updated_at.desc())
            ).all()
            return [_to_item(row) for row in rows]

    def get(self, media_id: str) -> MediaItem | None:
        """Return a single media item or None if it does not exist."""
        with session_scope(self.db, "load media item") as session:
            row = session.get(MediaRecord, media_id)
            return _to_item(row) if row is not None else None

    def require(self, media_id: str) -> MediaItem:
        """Return a single media item.

        Raises:
            MediaItemNotFoundError: If no item with the id exists
        """
        item = self.get(media_id)
        if item is None:
            raise MediaItemNotFoundError(f"Media item '{media_id}' not found")
        return item

    def count(self) -> int:
        """Number of stored media items."""
        with session_scope(self.db, "count media") as session:
            return session.scalar(select(func.count()).select_from(MediaRecord)) or 0

    def put(self, item: MediaItem, now: datetime | None = None) -> MediaItem:
        """Insert or replace a media item.

        Args:
            item (MediaItem): The item to store
            now (datetime | None): Write time used for derived timestamps

        Returns:
            MediaItem: The item as persisted, with derived fields applied
        """
        stored = item.with_derived_fields(now)
        with session_scope(self.db, "store media item") as session:
            session.merge(MediaRecord(**stored.model_dump()))
        log.debug(f"Stored media item $$'{stored.title}'$$ ($$'{stored.id}'$$)")
        return stored

    def put_many(self, items: Iterable[MediaItem]) -> list[MediaItem]:
        """Upsert several media items in one transaction.

        Existing items that are not part of ``items`` are left untouched. Items
        that arrive completed without ``completed_at`` are stamped with their own
        ``updated_at`` so every device derives the same value.

        Returns:
            list[MediaItem]: The items as persisted
        """
        stored = [item.with_derived_fields(item.updated_at) for item in items]
        with session_scope(self.db, "store media items") as session:
            for item in stored:
                session.merge(MediaRecord(**item.model_dump()))
        log.debug(f"Upserted $${{count: {len(stored)}}}$$ media items")
        return stored

    def delete(self, media_id: str) -> bool:
        """Delete a media item.

        Returns:
            bool: True if a row was removed, False if the id was unknown
        """
        with session_scope(self.db, "delete media item") as session:
            result = session.execute(
                delete(MediaRecord).where(MediaRecord.id == media_id)
            )
            return bool(result.rowcount)

    def range_query(
        self,
        field: str,
        *,
        lower: Any = None,
        upper: Any = None,
        equals: Any = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[MediaItem]:
        """Query media items by an indexed scalar field.

        Bounds are inclusive. ``equals`` takes precedence over the bounds.

        Args:
            field (str): One of ``QUERYABLE_FIELDS``
            lower (Any): Inclusive lower bound
            upper (Any): Inclusive upper bound
            equals (Any): Exact value to match
            descending (bool): Sort by the field in descending order
            limit (int | None): Maximum number of results

        Returns:
            list[MediaItem]: Matching items ordered by the field

        Raises:
            UnsupportedQueryFieldError: If the field is not queryable
        """
        if field not in QUERYABLE_FIELDS:
            raise UnsupportedQueryFieldError(
                f"Field '{field}' cannot be queried; expected one of "
                f"{', '.join(sorted(QUERYABLE_FIELDS))}"
            )

        column = getattr(MediaRecord, field)
        stmt = select(MediaRecord)
        if equals is not None:
            stmt = stmt.where(column == _coerce_query_value(field, equals))
        else:
            if lower is not None:
                stmt = stmt.where(column >= _coerce_query_value(field, lower))
            if upper is not None:
                stmt = stmt.where(column <= _coerce_query_value(field, upper))
        stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with session_scope(self.db, f"query media by {field}") as session:
            return [_to_item(row) for row in session.scalars(stmt).all()]

    # Collections

    def get_collections(self) -> list[SmartCollection]:
        """Return every collection, most recently updated first."""
        with session_scope(self.db, "load collections") as session:
            rows = session.scalars(
                select(CollectionRecord).order_by(CollectionRecord.updated_at.desc())
            ).all()
            return [_to_collection(row) for row in rows]

    def get_collection(self, collection_id: str) -> SmartCollection | None:
        """Return a single collection or None."""
        with session_scope(self.db, "load collection") as session:
            row = session.get(CollectionRecord, collection_id)
            return _to_collection(row) if row is not None else None

    def require_collection(self, collection_id: str) -> SmartCollection:
        """Return a single collection.

        Raises:
            CollectionNotFoundError: If no collection with the id exists
        """
        collection = self.get_collection(collection_id)
        if collection is None:
            raise CollectionNotFoundError(f"Collection '{collection_id}' not found")
        return collection

    def put_collection(self, collection: SmartCollection) -> SmartCollection:
        """Insert or replace a collection."""
        with session_scope(self.db, "store collection") as session:
            session.merge(CollectionRecord(**collection.model_dump()))
        return collection

    def put_collections(
        self, collections: Iterable[SmartCollection]
    ) -> list[SmartCollection]:
        """Upsert several collections in one transaction."""
        stored = list(collections)
        with session_scope(self.db, "store collections") as session:
            for collection in stored:
                session.merge(CollectionRecord(**collection.model_dump()))
        return stored

    def delete_collection(self, collection_id: str) -> bool:
        """Delete a collection; returns False if it did not exist."""
        with session_scope(self.db, "delete collection") as session:
            result = session.execute(
                delete(CollectionRecord).where(CollectionRecord.id == collection_id)
            )
            return bool(result.rowcount)

    # Housekeeping

    def get_value(self, key: str) -> str | None:
        """Read a housekeeping value."""
        with session_scope(self.db, "read housekeeping") as session:
            row = session.get(Housekeeping, key)
            return row.value if row is not None else None

    def set_value(self, key: str, value: str | None) -> None:
        """Write a housekeeping value."""
        with session_scope(self.db, "write housekeeping") as session:
            session.merge(Housekeeping(key=key, value=value))

    # Bulk

    def replace_all(
        self, media: Iterable[MediaItem], collections: Iterable[SmartCollection]
    ) -> None:
        """Replace all media and collections in a single transaction.

        History, the mutation queue and housekeeping values are kept.
        """
        items = [item.with_derived_fields(item.updated_at) for item in media]
        groups = list(collections)
        with session_scope(self.db, "replace library") as session:
            session.execute(delete(MediaRecord))
            session.execute(delete(CollectionRecord))
            session.add_all(MediaRecord(**item.model_dump()) for item in items)
            session.add_all(CollectionRecord(**c.model_dump()) for c in groups)
        log.info(
            f"Replaced local library with $${{media: {len(items)}, "
            f"collections: {len(groups)}}}$$"
        )

    def wipe(self) -> None:
        """Delete every row of every local table."""
        with session_scope(self.db, "wipe local data") as session:
            for model in (
                MediaRecord,
                CollectionRecord,
                HistoryRecord,
                MutationRecord,
                Housekeeping,
            ):
                session.execute(delete(model))
        log.warning("Wiped all local data")
