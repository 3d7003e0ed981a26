"""Tests for the HTTP API exposed to the application layer."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from mediasync.config.settings import MediaSyncConfig
from mediasync.core.service import SyncService
from mediasync.exceptions import RemoteRejectedError
from mediasync.web.app import create_app
from tests.fakes import FakeRemoteStore


@pytest.fixture
def service(ms_config: MediaSyncConfig, remote: FakeRemoteStore) -> SyncService:
    """Sync service backed by the fake remote store."""
    return SyncService(ms_config, remote=remote, run_migrations=False)


@pytest.fixture
def client(service: SyncService) -> Iterator[TestClient]:
    """Test client whose lifespan starts and stops the service."""
    with TestClient(create_app(service)) as test_client:
        yield test_client


def _add(client: TestClient, title: str, **fields) -> dict:
    response = client.post("/api/media", json={"title": title, **fields})
    assert response.status_code == 201, response.text
    return response.json()


def test_media_crud(client: TestClient) -> None:
    """Media can be added, read, updated and deleted."""
    created = _add(client, "Dune", type="book", total_units=10)
    media_id = created["id"]
    assert created["normalized_title"] == "dune"

    listing = client.get("/api/media").json()
    assert listing["total"] == 1

    patched = client.patch(f"/api/media/{media_id}", json={"progress": 5})
    assert patched.status_code == 200
    assert patched.json()["completion_percent"] == 50.0

    history = client.get(f"/api/media/{media_id}/history").json()
    assert {event["action_type"] for event in history} == {
        "added",
        "progress_update",
    }

    assert client.delete(f"/api/media/{media_id}").json() == {"ok": True}

    missing = client.get(f"/api/media/{media_id}")
    assert missing.status_code == 404
    body = missing.json()
    assert body["error"] == "MediaItemNotFoundError"
    assert body["path"] == f"/api/media/{media_id}"


def test_media_patch_rejects_unknown_fields(client: TestClient) -> None:
    """Partial updates only accept known media fields."""
    media_id = _add(client, "Dune")["id"]

    response = client.patch(f"/api/media/{media_id}", json={"colour": "red"})

    assert response.status_code == 422


def test_media_query(client: TestClient) -> None:
    """Range queries parse their bounds and reject unknown fields."""
    for year in (1984, 2000, 2021):
        _add(client, f"Dune {year}", release_year=year)

    response = client.get(
        "/api/media/query", params={"field": "release_year", "lower": "2000"}
    )
    assert response.status_code == 200
    assert [item["release_year"] for item in response.json()["items"]] == [
        2000,
        2021,
    ]

    favorites = client.get(
        "/api/media/query", params={"field": "is_favorite", "equals": "false"}
    )
    assert favorites.json()["total"] == 3

    bad = client.get("/api/media/query", params={"field": "notes"})
    assert bad.status_code == 400
    assert bad.json()["error"] == "UnsupportedQueryFieldError"


def test_collections(client: TestClient) -> None:
    """Collections and their membership can be managed."""
    media_id = _add(client, "Dune")["id"]
    created = client.post("/api/collections", json={"title": "Books"})
    assert created.status_code == 201
    collection_id = created.json()["id"]

    added = client.put(f"/api/collections/{collection_id}/media/{media_id}")
    assert added.json()["media_ids"] == [media_id]

    renamed = client.patch(
        f"/api/collections/{collection_id}", json={"title": "Novels"}
    )
    assert renamed.json()["title"] == "Novels"

    removed = client.delete(f"/api/collections/{collection_id}/media/{media_id}")
    assert removed.json()["media_ids"] == []

    assert client.delete(f"/api/collections/{collection_id}").json() == {"ok": True}
    assert client.get(f"/api/collections/{collection_id}").status_code == 404
    assert client.get("/api/collections").json() == []


def test_status_and_connectivity(client: TestClient) -> None:
    """Status reports readiness and follows the connectivity flag."""
    status = client.get("/api/status").json()
    assert status["ready"] is True
    assert status["sync"]["online"] is True

    offline = client.put("/api/status/connectivity", json={"online": False})
    assert offline.json()["online"] is False


def test_offline_writes_are_delivered_by_sync(
    client: TestClient, remote: FakeRemoteStore
) -> None:
    """Writes made offline show up in the queue until a sync delivers them."""
    client.put("/api/status/connectivity", json={"online": False})
    media_id = _add(client, "Dune")["id"]

    queue = client.get("/api/sync/queue").json()
    assert [(m["operation"], m["target_id"]) for m in queue] == [
        ("insert", media_id)
    ]

    client.put("/api/status/connectivity", json={"online": True})
    assert client.post("/api/sync").json() == {"ok": True}

    assert client.get("/api/sync/queue").json() == []
    assert remote.rows("media")[media_id]["title"] == "Dune"
    assert client.get("/api/status").json()["sync"]["last_synced_at"] is not None


def test_dead_letters_can_be_requeued(
    client: TestClient, remote: FakeRemoteStore
) -> None:
    """Rejected writes end up in dead letters and can be retried."""
    remote.fail("insert", RemoteRejectedError)
    client.put("/api/status/connectivity", json={"online": False})
    media_id = _add(client, "Dune")["id"]
    client.put("/api/status/connectivity", json={"online": True})

    client.post("/api/sync")
    client.post("/api/sync")

    dead = client.get("/api/sync/dead-letters").json()
    assert [m["target_id"] for m in dead] == [media_id]
    assert dead[0]["state"] == "dead"

    remote.heal()
    requeued = client.post("/api/sync/dead-letters/requeue").json()
    assert requeued == {"requeued": 1}

    drained = client.post("/api/sync/drain").json()
    assert drained == {"delivered": 1, "pending": 0}
    assert media_id in remote.rows("media")


def test_discard_unknown_mutation(client: TestClient) -> None:
    """Discarding a message that does not exist is a 404."""
    response = client.delete("/api/sync/queue/missing")

    assert response.status_code == 404
    assert response.json()["error"] == "MutationNotFoundError"


def test_history_endpoint(client: TestClient) -> None:
    """The history timeline lists events newest first."""
    media_id = _add(client, "Dune")["id"]

    response = client.get("/api/history", params={"media_id": media_id})

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["action_type"] for item in items] == ["added"]


def test_backup_export_import_and_reset(client: TestClient) -> None:
    """The library can be exported, restored and wiped."""
    _add(client, "Dune")
    exported = client.get("/api/backup/export").json()
    assert len(exported["media"]) == 1

    assert client.post("/api/backup/reset").json() == {"ok": True}
    assert client.get("/api/media").json()["total"] == 0

    restored = client.post("/api/backup/import", json=exported)
    assert restored.json() == {"media": 1, "collections": 0}
    assert client.get("/api/media").json()["total"] == 1

    invalid = client.post("/api/backup/import", json={"media": "nope"})
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "BackupParseError"


def test_routes_without_service_are_unavailable() -> None:
    """Routes answer 503 until a service is attached."""
    with TestClient(create_app()) as client:
        response = client.get("/api/media")
        assert response.status_code == 503
        assert response.json()["error"] == "ServiceNotInitializedError"

        status = client.get("/api/status").json()
        assert status["ready"] is False
        assert status["sync"] is None
