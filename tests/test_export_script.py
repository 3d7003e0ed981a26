"""Tests for the export/import command line script."""

import json
from pathlib import Path

import pytest

from mediasync.config import settings as settings_module
from mediasync.config.database import MediaSyncDB
from mediasync.core.local_store import LocalStore
from mediasync.models.schemas.media import MediaItem
from scripts import export as export_script


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the configuration at a per-test data directory."""
    monkeypatch.setenv("MS_DATA_PATH", str(tmp_path))
    settings_module.get_config.cache_clear()
    yield tmp_path
    settings_module.get_config.cache_clear()


def _seed(data_dir: Path, *titles: str) -> None:
    db = MediaSyncDB(data_dir)
    try:
        store = LocalStore(db)
        for title in titles:
            store.put(MediaItem(title=title))
    finally:
        db.dispose()


def _titles(data_dir: Path) -> set[str]:
    db = MediaSyncDB(data_dir)
    try:
        return {item.title for item in LocalStore(db).get_all()}
    finally:
        db.dispose()


def test_export_writes_library(data_dir: Path) -> None:
    """The script dumps the local library to the given file."""
    _seed(data_dir, "Dune")
    output = data_dir / "export.json"

    assert export_script.main(["--file", str(output)]) == 0

    document = json.loads(output.read_text(encoding="utf-8"))
    assert [item["title"] for item in document["media"]] == ["Dune"]


def test_export_asks_before_overwriting(
    data_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """An existing file is kept when the user declines."""
    output = data_dir / "export.json"
    output.write_text("keep", encoding="utf-8")
    monkeypatch.setattr("builtins.input", lambda _: "n")

    assert export_script.main(["-f", str(output)]) == 1
    assert output.read_text(encoding="utf-8") == "keep"


def test_restore_replaces_library(data_dir: Path) -> None:
    """--restore imports a previously exported file."""
    _seed(data_dir, "Dune")
    backup = data_dir / "backup.json"
    assert export_script.main(["-f", str(backup)]) == 0
    _seed(data_dir, "Extra")

    assert export_script.main(["-f", str(backup), "--restore", "--yes"]) == 0

    assert _titles(data_dir) == {"Dune"}


def test_restore_rejects_invalid_file(data_dir: Path) -> None:
    """An invalid backup fails without touching the library."""
    _seed(data_dir, "Dune")
    backup = data_dir / "broken.json"
    backup.write_text("{not json", encoding="utf-8")

    assert export_script.main(["-f", str(backup), "-r", "-y"]) == 1
    assert _titles(data_dir) == {"Dune"}
