"""Shared pytest configuration and fixtures for the test suite."""

import atexit
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest
import yaml

_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="ms-tests-"))
os.environ["MS_DATA_PATH"] = str(_TEST_DATA_DIR)
_TEST_CONFIG_FILE = _TEST_DATA_DIR / "config.yaml"

_TEST_CONFIG_FILE.write_text(
    yaml.safe_dump(
        {
            "log_level": "DEBUG",
            "sync": {"interval": 0, "probe_interval": 0},
            "web": {"enabled": False},
        },
        sort_keys=False,
    ),
    encoding="utf-8",
)

from mediasync.config import settings as settings_module  # noqa: E402
from mediasync.config.database import MediaSyncDB  # noqa: E402
from mediasync.config.settings import MediaSyncConfig  # noqa: E402
from mediasync.core.connectivity import ConnectivityMonitor  # noqa: E402
from mediasync.core.coordinator import SyncCoordinator  # noqa: E402
from mediasync.core.history import HistoryLog  # noqa: E402
from mediasync.core.local_store import LocalStore  # noqa: E402
from mediasync.core.queue import MutationQueue  # noqa: E402
from mediasync.web.state import get_app_state  # noqa: E402
from tests.fakes import FakeRemoteStore  # noqa: E402

settings_module.get_config.cache_clear()


@pytest.fixture(autouse=True)
def _reset_app_state():
    """Ensure each test interacts with a fresh AppState instance."""
    get_app_state.cache_clear()
    state = get_app_state()
    yield state
    get_app_state.cache_clear()


@pytest.fixture
def ms_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> MediaSyncConfig:
    """Configuration whose data path is a per-test directory."""
    monkeypatch.setenv("MS_DATA_PATH", str(tmp_path))
    return MediaSyncConfig(
        sync={"interval": 0, "probe_interval": 0, "dead_letter_after": 2},
        web={"enabled": False},
    )


@pytest.fixture
def db(tmp_path: Path) -> Iterator[MediaSyncDB]:
    """A throwaway SQLite database with tables created from the models."""
    database = MediaSyncDB(tmp_path, run_migrations=False)
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture
def store(db: MediaSyncDB) -> LocalStore:
    """Local store bound to the test database."""
    return LocalStore(db)


@pytest.fixture
def history(db: MediaSyncDB) -> HistoryLog:
    """History log bound to the test database."""
    return HistoryLog(db)


@pytest.fixture
def queue(db: MediaSyncDB) -> MutationQueue:
    """Mutation queue bound to the test database."""
    return MutationQueue(db)


@pytest.fixture
def remote() -> FakeRemoteStore:
    """In-memory stand-in for the remote store."""
    return FakeRemoteStore()


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    """Connectivity monitor that starts online and never probes."""
    return ConnectivityMonitor(online=True)


@pytest.fixture
def coordinator(
    store: LocalStore,
    history: HistoryLog,
    queue: MutationQueue,
    remote: FakeRemoteStore,
    connectivity: ConnectivityMonitor,
) -> SyncCoordinator:
    """Coordinator wired to the test database and the fake remote store."""
    return SyncCoordinator(
        store,
        history,
        queue,
        remote,
        connectivity,
        dead_letter_after=3,
    )


@atexit.register
def _cleanup_test_data_dir() -> None:
    """Remove the temporary test data directory after the test session."""
    shutil.rmtree(_TEST_DATA_DIR, ignore_errors=True)
