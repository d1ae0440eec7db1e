"""Periodic watch-set jobs using APScheduler with async support."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from asxwatch.core.logging import get_logger

if TYPE_CHECKING:
    from .watch_set import WatchSetManager

logger = get_logger("services.scheduler")

CLEANUP_JOB_ID = "watch_set_cleanup"
REFRESH_JOB_ID = "watch_set_refresh"


class WatchSetScheduler:
    """Runs the eviction sweep and the due-refresh check on fixed intervals.

    Jobs use fixed ids with ``replace_existing`` and ``start`` is a no-op
    while running, so repeated starts never stack duplicate timers.
    """

    def __init__(
        self,
        manager: "WatchSetManager",
        cleanup_interval: float,
        refresh_interval: float,
        enabled: bool = True,
    ):
        self._manager = manager
        self._cleanup_interval = cleanup_interval
        self._refresh_interval = refresh_interval
        self._enabled = enabled
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Start the scheduler on the running event loop."""
        if self._scheduler is not None:
            logger.debug("Scheduler already running")
            return

        if not self._enabled:
            logger.info("Watch-set scheduler disabled via SCHEDULER_ENABLED=false")
            return

        scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one instance per job at a time
                "misfire_grace_time": 60,
            },
        )
        scheduler.add_job(
            self._wrap_job("cleanup", self._run_cleanup),
            trigger=IntervalTrigger(seconds=self._cleanup_interval),
            id=CLEANUP_JOB_ID,
            name="Evict idle tickers",
            replace_existing=True,
        )
        scheduler.add_job(
            self._wrap_job("refresh", self._run_refresh),
            trigger=IntervalTrigger(seconds=self._refresh_interval),
            id=REFRESH_JOB_ID,
            name="Refetch due quotes",
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            f"Watch-set scheduler started (cleanup every {self._cleanup_interval}s, "
            f"refresh check every {self._refresh_interval}s)"
        )

    def stop(self) -> None:
        """Stop the scheduler. Safe to call when not running."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Watch-set scheduler stopped")

    def job_ids(self) -> list[str]:
        if self._scheduler is None:
            return []
        return [job.id for job in self._scheduler.get_jobs()]

    async def _run_cleanup(self) -> None:
        self._manager.cleanup()

    async def _run_refresh(self) -> None:
        self._manager.refresh_due()

    def _wrap_job(
        self, name: str, func: Callable[[], Awaitable[None]]
    ) -> Callable[[], Awaitable[None]]:
        """Coroutine jobs run on the event loop, not in the thread pool."""

        async def wrapper() -> None:
            try:
                await func()
            except Exception:
                logger.exception(f"Watch-set job {name} failed")

        return wrapper
