"""Scheduler Module."""

import asyncio
import contextlib
from datetime import UTC, datetime, timedelta

from tzlocal import get_localzone

from mediasync import log
from mediasync.core.connectivity import ConnectivityMonitor
from mediasync.core.coordinator import SyncCoordinator

__all__ = ["ReconcileScheduler"]


class ReconcileScheduler:
    """Runs reconcile cycles for a coordinator.

    Cycles run on a fixed interval, on every offline-to-online transition and on
    demand. The scheduler never runs two of its own cycles at once; direct
    ``fetch()`` calls made elsewhere may still overlap with a cycle.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        connectivity: ConnectivityMonitor,
        interval: int,
        stop_event: asyncio.Event | None = None,
    ):
        """Initialize the scheduler.

        Args:
            coordinator: Coordinator whose ``reconcile()`` is run
            connectivity: Source of online/offline transitions
            interval: Seconds between periodic cycles; 0 disables the timer
            stop_event: Event to signal shutdown
        """
        self.coordinator = coordinator
        self.connectivity = connectivity
        self.interval = interval
        self.stop_event = stop_event or asyncio.Event()

        self._running = False
        self._sync_lock = asyncio.Lock()
        self._current_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()  # Prevents early GC
        self.next_sync_at: datetime | None = None
        self.cycles = 0

    @property
    def is_running(self) -> bool:
        """Return whether the scheduler loops are running."""
        return self._running

    @property
    def is_syncing(self) -> bool:
        """Return whether a cycle is currently in progress."""
        return self._sync_lock.locked()

    async def sync(self) -> None:
        """Execute a single reconcile cycle with error handling."""
        async with self._sync_lock:
            try:
                self._current_task = asyncio.create_task(self.coordinator.reconcile())
                await self._current_task
                self.cycles += 1
            except asyncio.CancelledError:
                if self._current_task and not self._current_task.done():
                    log.info("Cancelling reconcile cycle...")
                    self._current_task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await self._current_task
                raise
            except Exception:
                log.error("Reconcile error", exc_info=True)
            finally:
                self._current_task = None

    async def trigger_sync(self) -> None:
        """Run a cycle now, waiting for a running one to finish first."""
        log.info("Manually triggering reconcile")
        await self.sync()

    async def start(self) -> None:
        """Start the periodic and transition loops."""
        if self._running:
            return
        self._running = True

        if self.interval > 0:
            log.debug(f"Starting periodic reconcile every {self.interval}s")
            self._spawn(self._periodic_loop())
        else:
            log.debug("Periodic reconcile disabled, running a single cycle")
            self._spawn(self.sync())

        self._spawn(self._transition_loop())

    async def stop(self) -> None:
        """Stop the scheduler and cancel the running cycle, if any."""
        self._running = False
        self.stop_event.set()

        for task in list(self._tasks):
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        current_task = self._current_task
        if current_task and not current_task.done():
            current_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await current_task
        self.next_sync_at = None

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _periodic_loop(self) -> None:
        """Handle periodic reconciliation."""
        while self._running and not self.stop_event.is_set():
            try:
                await self.sync()

                self.next_sync_at = datetime.now(UTC) + timedelta(
                    seconds=self.interval
                )
                log.info(
                    "Next reconcile scheduled for: "
                    f"{self.next_sync_at.astimezone(get_localzone())}"
                )

                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self.stop_event.wait(), self.interval)
            except asyncio.CancelledError:
                log.debug("Periodic reconcile cancelled")
                break
            except Exception:
                log.error("Periodic reconcile error", exc_info=True)
                await asyncio.sleep(10)

    async def _transition_loop(self) -> None:
        """Reconcile whenever connectivity comes back."""
        try:
            async for online in self.connectivity.transitions():
                if not self._running:
                    break
                if online:
                    log.info("Back online, reconciling")
                    await self.sync()
        except asyncio.CancelledError:
            log.debug("Connectivity watcher cancelled")
