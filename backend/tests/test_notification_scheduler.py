"""
Notification cron loop, driven by a stub check function.
"""
from __future__ import annotations

import asyncio

from app.worker.notifications import NotificationScheduler


async def test_run_once_returns_check_result():
    async def check() -> int:
        return 3

    scheduler = NotificationScheduler(interval_seconds=60, check=check)
    assert await scheduler.run_once() == 3
    assert scheduler.runs == 1


async def test_run_once_survives_errors():
    async def check() -> int:
        raise RuntimeError("database down")

    scheduler = NotificationScheduler(interval_seconds=60, check=check)
    assert await scheduler.run_once() is None
    assert scheduler.runs == 1


async def test_loop_repeats_until_stopped():
    calls = asyncio.Event()
    seen: list[int] = []

    async def check() -> int:
        seen.append(1)
        if len(seen) >= 3:
            calls.set()
        return 0

    scheduler = NotificationScheduler(interval_seconds=0.01, check=check)
    scheduler.start()
    assert scheduler.running
    await asyncio.wait_for(calls.wait(), timeout=2)
    await scheduler.stop()
    assert not scheduler.running
    assert scheduler.runs >= 3


async def test_stop_without_start_is_noop():
    scheduler = NotificationScheduler(interval_seconds=1, check=lambda: None)
    await scheduler.stop()
    assert not scheduler.running
