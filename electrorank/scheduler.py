"""Recurring execution of the daily job on a cron trigger."""
from __future__ import annotations

import logging
from typing import Callable

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Settings
from .orchestrator import DailyJob, JobSummary

logger = logging.getLogger(__name__)

JOB_ID = "electrorank-daily"


def _run_job(job_factory: Callable[[], DailyJob]) -> JobSummary | None:
    try:
        job = job_factory()
    except Exception:
        logger.exception("Unable to set up the daily job; retrying at the next trigger")
        return None
    return job.run_once()


def build_scheduler(
    settings: Settings,
    job_factory: Callable[[], DailyJob],
    *,
    scheduler: BlockingScheduler | None = None,
) -> BlockingScheduler:
    """Return a scheduler that runs the daily job at the configured time (UTC)."""

    scheduler = scheduler or BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        _run_job,
        trigger=CronTrigger(hour=settings.schedule_hour, minute=settings.schedule_minute, timezone="UTC"),
        args=[job_factory],
        id=JOB_ID,
        name="ElectroRank daily job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    logger.info(
        "Daily job scheduled for %02d:%02d UTC",
        settings.schedule_hour,
        settings.schedule_minute,
    )
    return scheduler


def run_scheduled(settings: Settings, job_factory: Callable[[], DailyJob]) -> None:
    """Block and run the daily job on schedule until interrupted."""

    scheduler = build_scheduler(settings, job_factory)
    logger.info("Press Ctrl+C to stop the scheduler")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
