"""Tests for the process entry point helpers."""

from pathlib import Path

import pytest

import main as main_module
from mediasync.config import settings as settings_module


@pytest.fixture(autouse=True)
def fresh_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Load the configuration from a per-test data directory."""
    monkeypatch.setenv("MS_DATA_PATH", str(tmp_path))
    settings_module.get_config.cache_clear()
    yield
    settings_module.get_config.cache_clear()


def test_validate_configuration_accepts_defaults() -> None:
    """A missing config file is valid and runs local-only."""
    assert main_module.validate_configuration() is True


def test_validate_configuration_rejects_invalid_remote(tmp_path: Path) -> None:
    """An invalid remote URL is reported instead of raised."""
    (tmp_path / "config.yaml").write_text(
        "remote:\n  url: ftp://example.com\n", encoding="utf-8"
    )

    assert main_module.validate_configuration() is False
