"""Tests for the SQLite database manager and its migrations."""

from pathlib import Path

import pytest
from sqlalchemy import inspect

from mediasync.config.database import DB_FILENAME, MediaSyncDB
from mediasync.core.local_store import LocalStore
from mediasync.core.queue import MutationQueue
from mediasync.exceptions import DataPathError
from mediasync.models.schemas.media import MediaItem, MediaType
from mediasync.models.schemas.mutation import (
    MutationMessage,
    MutationOperation,
    SyncCollection,
)

EXPECTED_TABLES = {
    "house_keeping",
    "media",
    "history",
    "sync_queue",
    "smart_collections",
}


def test_migrations_create_schema(tmp_path: Path) -> None:
    """Running the Alembic migrations creates every table."""
    db = MediaSyncDB(tmp_path / "data")
    try:
        tables = set(inspect(db.engine).get_table_names())
        assert EXPECTED_TABLES <= tables
        assert "alembic_version" in tables
        assert (tmp_path / "data" / DB_FILENAME).exists()
    finally:
        db.dispose()


def test_migrated_schema_accepts_writes(tmp_path: Path) -> None:
    """Stores work against the migrated schema, not only the model metadata."""
    db = MediaSyncDB(tmp_path)
    try:
        store = LocalStore(db)
        item = store.put(MediaItem(title="Dune", type=MediaType.LIGHT_NOVEL))
        assert store.require(item.id).type == MediaType.LIGHT_NOVEL

        queue = MutationQueue(db)
        queue.append(
            MutationMessage(
                collection=SyncCollection.SMART_COLLECTIONS,
                operation=MutationOperation.DELETE,
                target_id="c1",
            )
        )
        assert queue.pending_count() == 1
    finally:
        db.dispose()


def test_migrations_are_repeatable(tmp_path: Path) -> None:
    """Opening an already migrated database keeps its data."""
    first = MediaSyncDB(tmp_path)
    item = LocalStore(first).put(MediaItem(title="Dune"))
    first.dispose()

    second = MediaSyncDB(tmp_path)
    try:
        assert LocalStore(second).require(item.id).title == "Dune"
    finally:
        second.dispose()


def test_data_path_must_not_be_a_file(tmp_path: Path) -> None:
    """A file where the data directory should be is rejected."""
    data_file = tmp_path / "data"
    data_file.write_text("not a directory", encoding="utf-8")

    with pytest.raises(DataPathError):
        MediaSyncDB(data_file)


def test_sqlite_runs_in_wal_mode(db: MediaSyncDB) -> None:
    """Connections are configured with the WAL journal."""
    with db.engine.connect() as conn:
        mode = conn.exec_driver_sql("PRAGMA journal_mode").scalar()

    assert str(mode).lower() == "wal"


def test_context_manager_closes_session(db: MediaSyncDB) -> None:
    """The shared session is released when the context exits."""
    with db as ctx:
        assert ctx.session is not None
    assert db._session is None
