from __future__ import annotations

import argparse
import asyncio
from collections.abc import Awaitable, Callable
from datetime import date

from app.core.config import settings
from app.core.logging import logger
from app.db.session import async_session_factory
from app.services.notifications import NotificationService

"""
Notification cron: runs NotificationService.check_expiring_items once at
start and then every NOTIFICATION_INTERVAL_SECONDS.

Started from the FastAPI lifespan, or standalone:
    python -m app.worker.notifications [--once]
"""

CheckFn = Callable[[], Awaitable[int]]


async def run_notification_check(
    today: date | None = None, lookahead_days: int | None = None
) -> int:
    async with async_session_factory() as session:
        service = NotificationService(session)
        return await service.check_expiring_items(
            today=today,
            lookahead_days=lookahead_days or settings.notification_lookahead_days,
        )


class NotificationScheduler:
    """Fixed-interval asyncio loop around one check function."""

    def __init__(
        self,
        interval_seconds: float | None = None,
        check: CheckFn | None = None,
    ) -> None:
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.notification_interval_seconds
        )
        self._check = check or run_notification_check
        self._task: asyncio.Task[None] | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int | None:
        """Run one check. Errors are logged, never raised, so the loop keeps going."""
        self.runs += 1
        try:
            return await self._check()
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Notification check failed: {exc}", exc_info=True)
            return None

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        logger.info(f"Starting notification scheduler (every {self.interval_seconds}s)")
        self._task = asyncio.create_task(self._loop(), name="notification-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Notification scheduler stopped")


async def _main(once: bool) -> None:
    from app.db.session import engine

    try:
        if once:
            created = await run_notification_check()
            print(f"created {created} notifications")
            return
        scheduler = NotificationScheduler()
        scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Expiry notification cron")
    parser.add_argument("--once", action="store_true", help="run a single check and exit")
    args = parser.parse_args()
    try:
        asyncio.run(_main(args.once))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
