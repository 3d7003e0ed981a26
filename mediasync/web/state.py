"""Global web application state utilities.

Holds references to long-lived objects (the sync service, shutdown hooks) needed
by route handlers and websocket endpoints.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from mediasync import log
from mediasync.exceptions import ServiceNotInitializedError

__all__ = ["AppState", "get_app_state"]

if TYPE_CHECKING:
    from mediasync.core.service import SyncService


class AppState:
    """Container for global web application state."""

    def __init__(self) -> None:
        """Initialize empty state containers and record process start time."""
        self.service: SyncService | None = None
        self.on_shutdown_callbacks: list[Callable[[], Any]] = []
        self.started_at: datetime = datetime.now(UTC)

    def set_service(self, service: "SyncService") -> None:
        """Set the sync service.

        Args:
            service (SyncService): The service instance to expose to routes.
        """
        self.service = service

    def require_service(self) -> "SyncService":
        """Return the initialized sync service.

        Raises:
            ServiceNotInitializedError: If no initialized service is available.
        """
        if self.service is None or not self.service.initialized:
            raise ServiceNotInitializedError("Sync service not available")
        return self.service

    def add_shutdown_callback(self, cb: Callable[[], Any]) -> None:
        """Register a shutdown callback executed during app shutdown.

        Args:
            cb (Callable[[], Any]): The callback function to register.
        """
        self.on_shutdown_callbacks.append(cb)

    async def shutdown(self) -> None:
        """Run registered shutdown callbacks, logging individual failures."""
        for cb in self.on_shutdown_callbacks:
            try:
                res = cb()
                if hasattr(res, "__await__"):
                    await res
            except Exception:
                log.error("Web: Shutdown callback failed", exc_info=True)
        self.on_shutdown_callbacks.clear()


@lru_cache(maxsize=1)
def get_app_state() -> AppState:
    """Get the singleton application state instance.

    Returns:
        AppState: The application state instance.
    """
    return AppState()
