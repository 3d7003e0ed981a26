"""MediaSync Configuration Settings."""

from __future__ import annotations

import os
from functools import cached_property, lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from mediasync.utils.logging import _get_logger
from mediasync.utils.types import BaseStrEnum

__all__ = [
    "LogLevel",
    "MediaSyncConfig",
    "RemoteConfig",
    "SyncConfig",
    "WebConfig",
    "get_config",
]

_log = _get_logger(__name__)

DATA_PATH_ENV = "MS_DATA_PATH"


def get_data_path() -> Path:
    """Resolve the data directory from the environment.

    Returns:
        Path: The directory holding the database, logs and config file.
    """
    return Path(os.getenv(DATA_PATH_ENV, "./data")).resolve()


def find_yaml_config_file() -> Path:
    """Find the YAML configuration file in the data path.

    Returns:
        Path: The path to an existing YAML configuration file or the default location.
    """
    data_path = get_data_path()

    for ext in ("yaml", "yml"):
        yaml_file = data_path / f"config.{ext}"
        if yaml_file.exists():
            _log.debug(f"Using YAML config file: {yaml_file.resolve()}")
            return yaml_file.resolve()
    return data_path / "config.yaml"


class LogLevel(BaseStrEnum):
    """Enumeration of available logging levels.

    Note: SUCCESS is a custom level used by this application.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RemoteConfig(BaseModel):
    """Connection settings for the shared remote store (PostgREST/Supabase)."""

    url: str | None = Field(
        default=None,
        description="Base URL of the REST endpoint, e.g. https://xyz.supabase.co",
    )
    api_key: SecretStr | None = Field(
        default=None, description="API key sent as both apikey and bearer token"
    )
    schema_name: str = Field(default="public", description="Database schema to use")
    timeout: float = Field(
        default=10.0, gt=0, description="Per-call timeout in seconds"
    )
    media_table: str = Field(default="media", description="Remote media table")
    history_table: str = Field(default="history", description="Remote history table")
    collections_table: str = Field(
        default="smart_collections", description="Remote collections table"
    )

    @property
    def configured(self) -> bool:
        """Whether enough settings are present to talk to the remote store."""
        return bool(self.url)


class SyncConfig(BaseModel):
    """Reconcile cycle and queue policy settings."""

    interval: int = Field(
        default=30, ge=0, description="Seconds between reconcile cycles (0 disables)"
    )
    probe_interval: int = Field(
        default=15,
        ge=0,
        description="Seconds between connectivity probes (0 disables probing)",
    )
    dead_letter_after: int = Field(
        default=5,
        ge=0,
        description="Rejections before a queued mutation is dead-lettered (0 never)",
    )
    mirror_history: bool = Field(
        default=True, description="Best-effort copy of history events to the remote"
    )
    history_pull_limit: int = Field(
        default=50, ge=1, le=1000, description="Remote history events pulled per fetch"
    )
    start_online: bool = Field(
        default=True, description="Initial connectivity flag before the first probe"
    )


class WebConfig(BaseModel):
    """Configuration for the embedded web server."""

    enabled: bool = Field(default=True, description="Enable the MediaSync web API")
    host: str = Field(default="127.0.0.1", description="Host for the web server")
    port: int = Field(default=4747, description="Port for the web server")


class MediaSyncConfig(BaseSettings):
    """Application configuration.

    Configuration is sourced from a YAML file in the data directory, optionally
    combined with parameters passed directly to the model.
    """

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="Logging level for the application"
    )
    remote: RemoteConfig = Field(
        default_factory=RemoteConfig, description="Remote store connection"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig, description="Synchronization settings"
    )
    web: WebConfig = Field(
        default_factory=WebConfig, description="Embedded web server configuration"
    )

    @cached_property
    def data_path(self) -> Path:
        """Get the data path for MediaSync.

        Returns:
            Path: The data path resolved from the environment or default location.
        """
        return get_data_path()

    @model_validator(mode="after")
    def validate_remote(self) -> MediaSyncConfig:
        """Normalize the remote settings.

        Returns:
            MediaSyncConfig: Self with validated settings.

        Raises:
            ValueError: If the remote URL is not an HTTP(S) URL.
        """
        if self.remote.url:
            url = self.remote.url.strip().rstrip("/")
            if not url.startswith(("http://", "https://")):
                raise ValueError("remote.url must be an http(s) URL")
            self.remote.url = url
        else:
            _log.warning(
                "No remote.url configured; MediaSync will run in local-only mode"
            )
        return self

    def __str__(self) -> str:
        """Create a human-readable summary of the configuration.

        Returns:
            str: Configuration summary.
        """
        remote = self.remote.url or "local-only"
        return (
            f"MediaSync Config: REMOTE: {remote}, "
            f"SYNC_INTERVAL: {self.sync.interval}s, "
            f"DATA_PATH: {self.data_path}, LOG_LEVEL: {self.log_level}"
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of configuration sources."""
        return (
            init_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=find_yaml_config_file()),
        )

    model_config = SettingsConfigDict(extra="ignore")


@lru_cache(maxsize=1)
def get_config() -> MediaSyncConfig:
    """Get the singleton instance of MediaSyncConfig.

    Returns:
        MediaSyncConfig: The singleton configuration instance.
    """
    return MediaSyncConfig()
