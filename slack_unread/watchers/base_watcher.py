"""Abstract base class for timer-driven watchers."""

import asyncio
import logging
from abc import ABC, abstractmethod

from slack_unread.watchers.scheduler import PollCallback, PollScheduler


class BaseWatcher(ABC):
    """Base class for watchers that poll an external source on fixed cadences.

    Subclasses must implement:
        - poll() -> one fast-cadence cycle

    and may register extra cadences with ``add_schedule()``. The watcher owns
    its schedulers: ``start()``/``stop()`` control all of them together.
    """

    def __init__(self, check_interval: int = 60):
        self.check_interval = check_interval
        self.logger = logging.getLogger(self.__class__.__name__)
        self.schedulers: list[PollScheduler] = [
            PollScheduler("poll", check_interval, self.poll, run_immediately=True)
        ]

    @abstractmethod
    async def poll(self) -> None:
        """Run one polling cycle. Must not raise for expected failures."""

    def add_schedule(
        self, name: str, interval: float, callback: PollCallback, run_immediately: bool = False
    ) -> PollScheduler:
        scheduler = PollScheduler(name, interval, callback, run_immediately=run_immediately)
        self.schedulers.append(scheduler)
        return scheduler

    def start(self) -> None:
        self.logger.info("Starting %s", self.__class__.__name__)
        for scheduler in self.schedulers:
            scheduler.start()

    def stop(self) -> None:
        """Stop scheduling further cycles. In-flight cycles finish unobserved."""
        self.logger.info("Stopping %s", self.__class__.__name__)
        for scheduler in self.schedulers:
            scheduler.stop()

    async def run(self) -> None:
        """Start every cadence and wait until they are all stopped."""
        self.start()
        try:
            await asyncio.gather(*(s.wait_closed() for s in self.schedulers))
        finally:
            self.stop()
