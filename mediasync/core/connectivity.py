"""Online/offline signal with listeners and an optional reachability probe."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from mediasync import log

__all__ = ["ConnectivityMonitor"]

Listener = Callable[[bool], Any]


class ConnectivityMonitor:
    """Holds the current connectivity flag and fans out its transitions.

    ``is_online`` can be read synchronously at any time. Listeners and
    ``transitions()`` consumers only hear about actual changes, never about a
    repeated value.
    """

    def __init__(
        self,
        online: bool = True,
        probe: Callable[[], Awaitable[bool]] | None = None,
        probe_interval: float = 0,
    ) -> None:
        """Initialize the monitor.

        Args:
            online (bool): Initial connectivity flag
            probe (Callable[[], Awaitable[bool]] | None): Coroutine reporting
                whether the remote store is reachable
            probe_interval (float): Seconds between probes; 0 disables probing
        """
        self._online = online
        self.probe = probe
        self.probe_interval = probe_interval

        self._listeners: list[Listener] = []
        self._streams: set[asyncio.Queue[bool]] = set()
        self._tasks: set[asyncio.Task] = set()  # Prevents early GC
        self._probe_task: asyncio.Task | None = None
        self.stop_event = asyncio.Event()

    @property
    def is_online(self) -> bool:
        """Current connectivity flag."""
        return self._online

    def set_online(self, online: bool) -> bool:
        """Update the flag and notify subscribers if it changed.

        Returns:
            bool: True if the flag changed
        """
        if online == self._online:
            return False
        self._online = online
        log.info(f"Connectivity changed: {'online' if online else 'offline'}")

        for stream in self._streams:
            stream.put_nowait(online)
        for listener in list(self._listeners):
            try:
                res = listener(online)
                if inspect.isawaitable(res):
                    task = asyncio.ensure_future(res)
                    self._tasks.add(task)
                    task.add_done_callback(self._tasks.discard)
            except Exception:
                log.error("Connectivity listener failed", exc_info=True)
        return True

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a callback invoked with the new flag on every transition.

        Returns:
            Callable[[], None]: Function that unregisters the listener
        """
        self._listeners.append(listener)

        def _remove() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _remove

    async def transitions(self) -> AsyncIterator[bool]:
        """Yield every connectivity change from now on."""
        stream: asyncio.Queue[bool] = asyncio.Queue()
        self._streams.add(stream)
        try:
            while True:
                yield await stream.get()
        finally:
            self._streams.discard(stream)

    async def probe_once(self) -> bool:
        """Run the probe once and apply its result.

        Returns:
            bool: The connectivity flag after probing
        """
        if self.probe is None:
            return self._online
        try:
            reachable = bool(await self.probe())
        except Exception:
            log.debug("Connectivity probe raised", exc_info=True)
            reachable = False
        self.set_online(reachable)
        return reachable

    async def start(self) -> None:
        """Start the periodic probe, if configured."""
        if self.probe is None or self.probe_interval <= 0 or self._probe_task:
            return
        self.stop_event.clear()
        log.debug(f"Probing remote reachability every {self.probe_interval}s")
        self._probe_task = asyncio.create_task(self._probe_loop())

    async def stop(self) -> None:
        """Stop probing and wait for pending listener tasks."""
        self.stop_event.set()
        task, self._probe_task = self._probe_task, None
        if task and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _probe_loop(self) -> None:
        while not self.stop_event.is_set():
            await self.probe_once()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self.stop_event.wait(), self.probe_interval)
