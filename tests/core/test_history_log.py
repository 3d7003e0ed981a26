"""Tests for the append-only history log."""

from datetime import UTC, datetime, timedelta

from mediasync.core.history import HistoryLog
from mediasync.models.schemas.history import HistoryAction, HistoryEvent


def _event(media_id: str, minutes: int, action=HistoryAction.UPDATED) -> HistoryEvent:
    return HistoryEvent(
        media_id=media_id,
        action_type=action,
        value={"minutes": minutes},
        created_at=datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=minutes),
    )


def test_recent_returns_newest_first_with_limit(history: HistoryLog) -> None:
    """recent() orders by creation time and honors the limit."""
    for minutes in (1, 3, 2):
        history.append(_event("m1", minutes))

    recent = history.recent(limit=2)

    assert [event.value["minutes"] for event in recent] == [3, 2]
    assert history.count() == 3


def test_for_media_filters_by_media_id(history: HistoryLog) -> None:
    """for_media() only returns events of the requested item."""
    history.append(_event("m1", 1, HistoryAction.ADDED))
    history.append(_event("m2", 2, HistoryAction.ADDED))
    history.append(_event("m1", 3, HistoryAction.DELETED))

    events = history.for_media("m1")

    assert [event.action_type for event in events] == [
        HistoryAction.DELETED,
        HistoryAction.ADDED,
    ]


def test_insert_missing_never_overwrites(history: HistoryLog) -> None:
    """Events already stored keep their local payload."""
    local = history.append(_event("m1", 1))
    remote_copy = local.model_copy(update={"value": {"minutes": 99}})
    new = _event("m1", 5)

    inserted = history.insert_missing([remote_copy, new])

    assert inserted == 1
    stored = {event.id: event for event in history.for_media("m1")}
    assert stored[local.id].value == {"minutes": 1}
    assert new.id in stored


def test_insert_missing_with_nothing_to_insert(history: HistoryLog) -> None:
    """An empty batch is a no-op."""
    assert history.insert_missing([]) == 0
    assert history.count() == 0
