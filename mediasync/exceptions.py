"""MediaSync exception classes."""


class MediaSyncError(Exception):
    """Base class for all MediaSync exceptions."""

    # Default HTTP status for API responses
    status_code: int = 500


# Configuration errors
class ConfigError(MediaSyncError):
    """Base class for configuration-related errors."""

    status_code = 500


class DataPathError(ConfigError, ValueError):
    """The configured data directory path cannot be used."""

    status_code = 400


# Local store errors
class LocalStoreError(MediaSyncError):
    """The on-device store failed to read or persist data."""

    status_code = 500


class MediaItemNotFoundError(LocalStoreError, KeyError):
    """No media item with the requested id exists in the local store."""

    status_code = 404

    def __str__(self) -> str:
        """Use the plain message instead of KeyError's quoted repr."""
        return str(self.args[0]) if self.args else ""


class CollectionNotFoundError(LocalStoreError, KeyError):
    """No collection with the requested id exists in the local store."""

    status_code = 404

    def __str__(self) -> str:
        """Use the plain message instead of KeyError's quoted repr."""
        return str(self.args[0]) if self.args else ""


class UnsupportedQueryFieldError(LocalStoreError, ValueError):
    """A range query referenced a field that is not queryable."""

    status_code = 400


# Mutation queue errors
class QueueError(MediaSyncError):
    """Base class for mutation queue failures."""

    status_code = 500


class MutationNotFoundError(QueueError, KeyError):
    """The referenced queue entry does not exist (already delivered or discarded)."""

    status_code = 404

    def __str__(self) -> str:
        """Use the plain message instead of KeyError's quoted repr."""
        return str(self.args[0]) if self.args else ""


# Remote store errors
class RemoteError(MediaSyncError):
    """Base class for remote store failures."""

    status_code = 502


class RemoteUnavailableError(RemoteError):
    """The remote store could not be reached or did not answer in time."""

    status_code = 503


class RemoteRejectedError(RemoteError):
    """The remote store answered but refused the operation."""

    status_code = 502

    def __init__(self, message: str, http_status: int | None = None) -> None:
        """Store the HTTP status reported by the remote store, if any."""
        super().__init__(message)
        self.http_status = http_status


# Backup/restore errors
class BackupError(MediaSyncError):
    """Base class for export and import failures."""

    status_code = 500


class BackupParseError(BackupError, ValueError):
    """An import payload does not match the export document shape."""

    status_code = 400


# Service lifecycle errors
class ServiceNotInitializedError(MediaSyncError, RuntimeError):
    """The sync service is required but has not been initialized."""

    status_code = 503
