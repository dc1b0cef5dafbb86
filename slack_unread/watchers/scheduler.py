"""Fixed-cadence scheduler for async poll callbacks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

PollCallback = Callable[[], Awaitable[None]]


class PollScheduler:
    """Runs ``callback`` every ``interval`` seconds until stopped.

    Firings are serialized: the next interval starts counting only after the
    previous callback has returned, so a slow cycle delays the next one
    instead of overlapping it. ``stop()`` prevents further firings and lets an
    in-flight callback finish on its own.

    Args:
        name: Label used in logs and for the asyncio task.
        interval: Seconds between the end of one firing and the next.
        callback: Coroutine function to run.
        run_immediately: Fire once as soon as the scheduler starts.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: PollCallback,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self.interval = interval
        self.callback = callback
        self.run_immediately = run_immediately
        self.fire_count = 0
        self._stopped = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin the loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self._loop(), name=f"scheduler:{self.name}")
        logger.debug("Started %s scheduler (every %ss)", self.name, self.interval)

    def stop(self) -> None:
        self._stopped.set()

    async def wait_closed(self) -> None:
        """Wait for the loop to exit after ``stop()``."""
        if self._task is not None:
            await self._task

    async def fire(self) -> None:
        """Run the callback once now. Exceptions are logged, never raised."""
        self.fire_count += 1
        try:
            await self.callback()
        except Exception:
            logger.exception("Error in %s scheduler callback", self.name)

    async def _loop(self) -> None:
        if self.run_immediately:
            await self.fire()
        while not self._stopped.is_set():
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except TimeoutError:
                await self.fire()
        logger.debug("Stopped %s scheduler", self.name)
