"""Service object that owns the synchronization engine."""

from __future__ import annotations

import asyncio

from mediasync import log
from mediasync.config.database import MediaSyncDB
from mediasync.config.settings import MediaSyncConfig
from mediasync.core.connectivity import ConnectivityMonitor
from mediasync.core.coordinator import SyncCoordinator
from mediasync.core.history import HistoryLog
from mediasync.core.local_store import LocalStore
from mediasync.core.queue import MutationQueue
from mediasync.core.remote import RemoteStore, RestRemoteStore
from mediasync.core.sched import ReconcileScheduler
from mediasync.exceptions import ServiceNotInitializedError

__all__ = ["SyncService"]


class SyncService:
    """Builds and owns the database, stores, remote client and scheduler.

    Constructed once at startup and passed by reference to whatever needs the
    coordinator (the web layer, the CLI). ``initialize()`` must run before the
    coordinator is used; ``reset()`` wipes local data on logout.
    """

    def __init__(
        self,
        config: MediaSyncConfig,
        remote: RemoteStore | None = None,
        run_migrations: bool = True,
    ) -> None:
        """Initialize the service without touching disk or network yet.

        Args:
            config (MediaSyncConfig): Application configuration
            remote (RemoteStore | None): Remote client override; by default one
                is built from ``config.remote`` when a URL is configured
            run_migrations (bool): Upgrade the schema with Alembic on initialize
        """
        self.config = config
        self._remote_override = remote
        self.run_migrations = run_migrations
        self.stop_event = asyncio.Event()

        self.db: MediaSyncDB | None = None
        self.remote: RemoteStore | None = None
        self.connectivity: ConnectivityMonitor | None = None
        self.scheduler: ReconcileScheduler | None = None
        self._coordinator: SyncCoordinator | None = None
        self._running = False

    @property
    def initialized(self) -> bool:
        """Return whether ``initialize()`` has completed."""
        return self._coordinator is not None

    @property
    def is_running(self) -> bool:
        """Return whether the scheduler and probe are running."""
        return self._running

    @property
    def coordinator(self) -> SyncCoordinator:
        """The coordinator.

        Raises:
            ServiceNotInitializedError: If ``initialize()`` has not run
        """
        if self._coordinator is None:
            raise ServiceNotInitializedError("Sync service is not initialized")
        return self._coordinator

    async def initialize(self) -> None:
        """Open the database and wire up every component."""
        if self.initialized:
            return

        log.info("Initializing sync service")
        self.db = MediaSyncDB(self.config.data_path, self.run_migrations)

        self.remote = self._remote_override
        if self.remote is None and self.config.remote.configured:
            self.remote = RestRemoteStore.from_config(self.config.remote)
        if self.remote is None:
            log.warning("No remote store configured, changes stay queued locally")

        sync_cfg = self.config.sync
        self.connectivity = ConnectivityMonitor(
            online=sync_cfg.start_online,
            probe=self.remote.ping if self.remote is not None else None,
            probe_interval=sync_cfg.probe_interval,
        )

        self._coordinator = SyncCoordinator(
            LocalStore(self.db),
            HistoryLog(self.db),
            MutationQueue(self.db),
            self.remote,
            self.connectivity,
            dead_letter_after=sync_cfg.dead_letter_after,
            mirror_history=sync_cfg.mirror_history,
            history_pull_limit=sync_cfg.history_pull_limit,
        )
        self.scheduler = ReconcileScheduler(
            self._coordinator,
            self.connectivity,
            sync_cfg.interval,
            stop_event=self.stop_event,
        )

        media = await self._coordinator.fetch()
        log.success(
            f"Sync service ready $${{media: {len(media)}, "
            f"pending: {self._coordinator.queue.pending_count()}}}$$"
        )

    async def start(self) -> None:
        """Start connectivity probing and the reconcile scheduler."""
        if self._running:
            return
        await self.initialize()
        self._running = True
        await self.connectivity.start()
        await self.scheduler.start()
        log.info("Sync service started")

    async def stop(self) -> None:
        """Stop background work and release resources."""
        if not self.initialized:
            return
        self._running = False
        self.stop_event.set()

        log.info("Stopping sync service")
        await self.scheduler.stop()
        await self.connectivity.stop()
        await self.coordinator.wait_for_background()
        if self.remote is not None:
            await self.remote.close()
        self.db.dispose()
        log.info("Sync service stopped")

    async def reset(self) -> None:
        """Wipe all local data (logout)."""
        await self.coordinator.reset()

    def request_shutdown(self) -> None:
        """Request application shutdown from external callers."""
        if not self.stop_event.is_set():
            self.stop_event.set()

    async def wait_for_completion(self) -> None:
        """Wait until shutdown is requested."""
        if not self._running:
            return
        try:
            await self.stop_event.wait()
        except asyncio.CancelledError:
            log.info("Sync service wait interrupted")
            raise
