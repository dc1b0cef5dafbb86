"""Tests for PollScheduler and BaseWatcher lifecycle."""

from __future__ import annotations

import asyncio

from slack_unread.watchers.base_watcher import BaseWatcher
from slack_unread.watchers.scheduler import PollScheduler


class CountingWatcher(BaseWatcher):
    def __init__(self) -> None:
        super().__init__(check_interval=0.01)
        self.polls = 0

    async def poll(self) -> None:
        self.polls += 1


class TestPollScheduler:
    async def test_fires_immediately_then_on_interval(self) -> None:
        calls: list[int] = []

        async def callback() -> None:
            calls.append(1)

        scheduler = PollScheduler("test", 0.01, callback)
        scheduler.start()
        await asyncio.sleep(0.05)
        scheduler.stop()
        await scheduler.wait_closed()

        assert len(calls) >= 2
        assert scheduler.fire_count == len(calls)
        assert not scheduler.running

    async def test_no_immediate_fire_when_disabled(self) -> None:
        calls: list[int] = []

        async def callback() -> None:
            calls.append(1)

        scheduler = PollScheduler("slow", 60, callback, run_immediately=False)
        scheduler.start()
        await asyncio.sleep(0.01)
        scheduler.stop()
        await scheduler.wait_closed()

        assert calls == []

    async def test_firings_never_overlap(self) -> None:
        active = 0
        peak = 0

        async def slow() -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1

        scheduler = PollScheduler("slow", 0.001, slow)
        scheduler.start()
        await asyncio.sleep(0.1)
        scheduler.stop()
        await scheduler.wait_closed()

        assert peak == 1

    async def test_callback_errors_are_contained(self) -> None:
        async def boom() -> None:
            raise RuntimeError("boom")

        scheduler = PollScheduler("boom", 60, boom)

        await scheduler.fire()

        assert scheduler.fire_count == 1

    async def test_start_twice_is_noop(self) -> None:
        async def callback() -> None:
            return None

        scheduler = PollScheduler("twice", 60, callback, run_immediately=False)
        scheduler.start()
        task = scheduler._task
        scheduler.start()

        assert scheduler._task is task
        scheduler.stop()
        await scheduler.wait_closed()


class TestBaseWatcher:
    async def test_run_until_stopped(self) -> None:
        watcher = CountingWatcher()
        run = asyncio.create_task(watcher.run())

        await asyncio.sleep(0.05)
        watcher.stop()
        await asyncio.wait_for(run, timeout=1)

        assert watcher.polls >= 1

    async def test_add_schedule(self) -> None:
        watcher = CountingWatcher()

        async def extra() -> None:
            return None

        scheduler = watcher.add_schedule("extra", 300, extra)

        assert watcher.schedulers[-1] is scheduler
        assert scheduler.run_immediately is False
