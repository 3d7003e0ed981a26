"""Tests for the on-device media and collection store."""

from datetime import UTC, datetime, timedelta

import pytest

from mediasync.core.local_store import LocalStore
from mediasync.exceptions import (
    CollectionNotFoundError,
    LocalStoreError,
    MediaItemNotFoundError,
    UnsupportedQueryFieldError,
)
from mediasync.models.schemas.collection import SmartCollection
from mediasync.models.schemas.media import MediaItem, MediaStatus, MediaType


def _item(title: str, **fields) -> MediaItem:
    return MediaItem(title=title, **fields)


def test_put_recomputes_derived_fields(store: LocalStore) -> None:
    """Writes normalize the title and clamp progress against total units."""
    stored = store.put(
        _item("Cowboy Bebop: The Movie!", progress=30, total_units=26)
    )

    assert stored.normalized_title == "cowboybebopthemovie"
    assert stored.progress == 26
    assert stored.completion_percent == 100.0

    loaded = store.require(stored.id)
    assert loaded.normalized_title == "cowboybebopthemovie"
    assert loaded.progress == 26


def test_put_treats_game_progress_as_percentage(store: LocalStore) -> None:
    """Game progress is clamped to 100 and mirrored into completion_percent."""
    stored = store.put(_item("Hades", type=MediaType.GAME, progress=140))

    assert stored.progress == 100
    assert stored.completion_percent == 100.0


def test_put_stamps_completed_at_once(store: LocalStore) -> None:
    """Completing an item records the write time and keeps it afterwards."""
    when = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    stored = store.put(_item("Dune", status=MediaStatus.COMPLETED), when)
    assert stored.completed_at == when

    later = store.put(stored, when + timedelta(days=3))
    assert later.completed_at == when


def test_datetimes_come_back_as_utc(store: LocalStore) -> None:
    """Timestamps read back from SQLite are timezone aware."""
    stored = store.put(_item("Akira"))

    loaded = store.require(stored.id)

    assert loaded.created_at.tzinfo is not None
    assert loaded.updated_at == stored.updated_at


def test_get_all_orders_by_updated_at_desc(store: LocalStore) -> None:
    """get_all returns the most recently updated items first."""
    base = datetime(2024, 1, 1, tzinfo=UTC)
    older = store.put(_item("Older", updated_at=base))
    newer = store.put(_item("Newer", updated_at=base + timedelta(hours=1)))

    assert [item.id for item in store.get_all()] == [newer.id, older.id]
    assert store.count() == 2


def test_get_missing_returns_none_and_require_raises(store: LocalStore) -> None:
    """Unknown ids are None for get and an error for require."""
    assert store.get("missing") is None
    with pytest.raises(MediaItemNotFoundError) as exc_info:
        store.require("missing")
    assert "missing" in str(exc_info.value)


def test_delete_reports_whether_a_row_was_removed(store: LocalStore) -> None:
    """Deleting twice is harmless and reports False the second time."""
    stored = store.put(_item("Paprika"))

    assert store.delete(stored.id) is True
    assert store.delete(stored.id) is False
    assert store.get(stored.id) is None


def test_put_many_upserts_without_clearing(store: LocalStore) -> None:
    """put_many leaves items that are not part of the batch untouched."""
    keep = store.put(_item("Keep"))
    existing = store.put(_item("Before"))

    store.put_many([existing.model_copy(update={"title": "After"}), _item("New")])

    titles = {item.title for item in store.get_all()}
    assert titles == {"Keep", "After", "New"}
    assert store.require(keep.id).title == "Keep"


def test_put_many_stamps_completed_at_from_updated_at(store: LocalStore) -> None:
    """Completed rows without completed_at take their own update time."""
    updated = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)
    row = _item("Akira", status=MediaStatus.COMPLETED, updated_at=updated)

    (stored,) = store.put_many([row])

    assert stored.completed_at == updated
    assert store.require(row.id).completed_at == updated


def test_range_query_bounds_are_inclusive(store: LocalStore) -> None:
    """Lower and upper bounds include the boundary values."""
    for year in (1999, 2004, 2010, 2021):
        store.put(_item(f"Film {year}", release_year=year))

    results = store.range_query("release_year", lower=2004, upper=2010)

    assert [item.release_year for item in results] == [2004, 2010]


def test_range_query_equals_descending_and_limit(store: LocalStore) -> None:
    """Equality matches enum values given as strings and honors the limit."""
    store.put(_item("A", status=MediaStatus.PLANNED, progress=1))
    store.put(_item("B", status="watching", progress=5))
    store.put(_item("C", status=MediaStatus.IN_PROGRESS, progress=9))

    results = store.range_query("status", equals="in_progress")
    assert {item.title for item in results} == {"B", "C"}

    top = store.range_query("progress", descending=True, limit=2)
    assert [item.title for item in top] == ["C", "B"]


def test_range_query_rejects_unknown_fields(store: LocalStore) -> None:
    """Only indexed scalar fields can be queried."""
    with pytest.raises(UnsupportedQueryFieldError):
        store.range_query("notes", equals="x")

    with pytest.raises(LocalStoreError):
        store.range_query("type", equals="podcast")


def test_collections_round_trip(store: LocalStore) -> None:
    """Collections support the same get/put/delete surface as media."""
    collection = store.put_collection(
        SmartCollection(title="Favourites", media_ids=["a", "b"])
    )

    assert store.require_collection(collection.id).media_ids == ["a", "b"]
    assert [c.id for c in store.get_collections()] == [collection.id]

    assert store.delete_collection(collection.id) is True
    with pytest.raises(CollectionNotFoundError):
        store.require_collection(collection.id)


def test_housekeeping_values(store: LocalStore) -> None:
    """Housekeeping values can be written, overwritten and read."""
    assert store.get_value("last_sync_at") is None

    store.set_value("last_sync_at", "a")
    store.set_value("last_sync_at", "b")

    assert store.get_value("last_sync_at") == "b"


def test_replace_all_swaps_library(store: LocalStore) -> None:
    """replace_all drops existing media and collections in one go."""
    store.put(_item("Old"))
    store.put_collection(SmartCollection(title="Old list"))

    store.replace_all([_item("New")], [SmartCollection(title="New list")])

    assert [item.title for item in store.get_all()] == ["New"]
    assert [c.title for c in store.get_collections()] == ["New list"]


def test_wipe_clears_everything(store: LocalStore) -> None:
    """wipe removes media, collections and housekeeping values."""
    store.put(_item("Gone"))
    store.put_collection(SmartCollection(title="Gone too"))
    store.set_value("key", "value")

    store.wipe()

    assert store.count() == 0
    assert store.get_collections() == []
    assert store.get_value("key") is None
