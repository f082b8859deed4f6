"""Periodic Jobs - APScheduler wiring for the appointment sweep and reminder job.

Invariants:
    - Sweep runs every sweep_interval_hours and once daily just after local midnight
    - Jobs never overlap themselves (max_instances=1, coalesce missed runs)
    - Job failures are logged by the wrapper; the scheduler keeps running

Design Decisions:
    - AsyncIOScheduler shares the uvicorn event loop, so jobs await the engine directly
    - Jobs receive coroutine functions, not the engine: no import cycle with services/
"""

import logging
from collections.abc import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from nfcdesk.config import Settings

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


def _guarded(name: str, job: Job) -> Job:
    async def run() -> None:
        try:
            result = await job()
            logger.info("Job %s finished: %s", name, result, extra={"job": name})
        except Exception as e:
            logger.error(
                f"Job {name} failed: {e}", extra={"job": name}, exc_info=True,
            )
    return run


def build_scheduler(
    settings: Settings, sweep: Job, send_reminders: Job,
) -> AsyncIOScheduler:
    """Create (not start) the scheduler with the sweep and reminder jobs."""
    scheduler = AsyncIOScheduler(timezone=settings.facility_timezone)
    job_defaults = {"max_instances": 1, "coalesce": True}
    scheduler.add_job(
        _guarded("appointment_sweep", sweep),
        trigger=IntervalTrigger(hours=settings.sweep_interval_hours),
        id="appointment_sweep",
        **job_defaults,
    )
    scheduler.add_job(
        _guarded("appointment_sweep_daily", sweep),
        trigger=CronTrigger(hour=0, minute=5),
        id="appointment_sweep_daily",
        **job_defaults,
    )
    scheduler.add_job(
        _guarded("reminders", send_reminders),
        trigger=IntervalTrigger(minutes=settings.reminder_interval_minutes),
        id="reminders",
        **job_defaults,
    )
    return scheduler
