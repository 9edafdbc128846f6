# ------------------------------ IMPORTS ------------------------------
import logging
import time
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "search-context-sweep"
IDLE_JOB_ID = "inactivity-shutdown"

# ------------------------------ ACTIVITY MONITOR ------------------------------

class ActivityMonitor:
    """Tracks the last request time so the API can shut itself down once idle too long."""

    def __init__(self, timeout_seconds: float, check_interval_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.timeout_seconds = timeout_seconds
        self.check_interval_seconds = check_interval_seconds
        self._clock = clock
        self._last_activity = clock()

    @property
    def enabled(self) -> bool:
        return self.timeout_seconds > 0

    def touch(self) -> None:
        """Record activity now."""
        self._last_activity = self._clock()

    def idle_seconds(self) -> float:
        return self._clock() - self._last_activity

    def is_idle(self) -> bool:
        return self.enabled and self.idle_seconds() > self.timeout_seconds

# ------------------------------ SCHEDULER ------------------------------

def make_idle_check(scheduler: AsyncIOScheduler, monitor: ActivityMonitor, on_idle: Callable[[], Awaitable[None]]):
    """Job body for the inactivity check: unschedules itself and runs on_idle the first time the API is idle."""
    async def check_idle():
        if not monitor.is_idle():
            return

        logger.info(f"No activity for {int(monitor.idle_seconds() // 60)} minutes, shutting down...")
        scheduler.remove_job(IDLE_JOB_ID)
        await on_idle()

    return check_idle

def create_scheduler(
    monitor: ActivityMonitor,
    on_idle: Callable[[], Awaitable[None]],
    sweep: Callable[[], Awaitable[int]],
    sweep_interval_seconds: float,
) -> AsyncIOScheduler:
    """Build the background scheduler with the search-context sweep and, when enabled, the idle check."""
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        sweep,
        "interval",
        seconds=sweep_interval_seconds,
        id=SWEEP_JOB_ID,
        coalesce=True,
        max_instances=1,
    )

    if monitor.enabled:
        scheduler.add_job(
            make_idle_check(scheduler, monitor, on_idle),
            "interval",
            seconds=monitor.check_interval_seconds,
            id=IDLE_JOB_ID,
            coalesce=True,
            max_instances=1,
        )
    else:
        logger.info("Inactivity shutdown disabled")

    return scheduler

# ------------------------------ END OF FILE ------------------------------
