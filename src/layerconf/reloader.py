"""
Periodic reload schedulers.

Both schedulers wait one full interval before the first tick and stop through
an explicit stop signal that the waiting loop observes. A failing tick is
logged and the next tick still fires.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable
from datetime import timedelta

import structlog

from layerconf.core.errors import ConfigurationError

logger = structlog.get_logger()


def interval_seconds(interval: float | timedelta | None) -> float | None:
    """Normalise a reload interval to seconds; None disables periodic reload."""
    if interval is None:
        return None
    seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
    if seconds <= 0:
        raise ConfigurationError(
            "reload_interval must be positive", details={"reload_interval": seconds}
        )
    return seconds


class ReloadScheduler:
    """Runs ``tick`` on a daemon thread every ``interval`` seconds."""

    def __init__(self, tick: Callable[[], object], interval: float, *, name: str) -> None:
        self._tick = tick
        self._interval = interval
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"layerconf-reload-{self._name}", daemon=True
        )
        self._thread.start()
        logger.debug("reload_scheduler_started", provider=self._name, interval=self._interval)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._tick()
            except Exception as e:
                logger.warning(
                    "periodic_reload_failed",
                    provider=self._name,
                    error_type=type(e).__name__,
                    error=str(e),
                )

    def stop(self) -> None:
        """Signal the loop to exit. Safe from any thread, including the loop's own."""
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


class AsyncReloadScheduler:
    """Runs ``tick`` as an asyncio task every ``interval`` seconds."""

    def __init__(
        self, tick: Callable[[], Awaitable[object]], interval: float, *, name: str
    ) -> None:
        self._tick = tick
        self._interval = interval
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start on the running event loop."""
        if self._task is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._stop = asyncio.Event()
        self._task = self._loop.create_task(self._run(), name=f"layerconf-reload-{self._name}")
        logger.debug("reload_scheduler_started", provider=self._name, interval=self._interval)

    async def _run(self) -> None:
        assert self._stop is not None
        while True:
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self._tick()
            except Exception as e:
                logger.warning(
                    "periodic_reload_failed",
                    provider=self._name,
                    error_type=type(e).__name__,
                    error=str(e),
                )

    def stop(self) -> None:
        """Signal the task to exit. Safe from any thread."""
        loop, stop = self._loop, self._stop
        if loop is None or stop is None or loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            stop.set()
        else:
            loop.call_soon_threadsafe(stop.set)

    async def wait_closed(self) -> None:
        """Wait for the task to finish after ``stop()``."""
        task = self._task
        if task is not None and task is not asyncio.current_task():
            await task
