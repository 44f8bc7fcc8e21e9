"""APScheduler integration for the daily publish job.

Start and stop functions are designed to be called from the FastAPI lifespan.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from publisher.config import get_settings, require_publish_settings
from publisher.services.pipeline import run_publish_pipeline

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


def start_scheduler() -> AsyncIOScheduler:
    """Start the APScheduler with the daily publish job.

    Returns:
        The running scheduler instance.
    """
    global _scheduler  # noqa: PLW0603

    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    _scheduler = AsyncIOScheduler(timezone=tz)

    _scheduler.add_job(
        _run_daily_publish_job,
        trigger="cron",
        hour=settings.schedule.daily_pipeline_hour,
        minute=settings.schedule.daily_pipeline_minute,
        timezone=tz,
        id="daily_publish",
        name="Daily 60s publish",
        replace_existing=True,
    )
    logger.info(
        "Scheduled daily publish at %02d:%02d (%s)",
        settings.schedule.daily_pipeline_hour,
        settings.schedule.daily_pipeline_minute,
        settings.timezone,
    )

    _scheduler.start()
    logger.info("Scheduler started")
    return _scheduler


def stop_scheduler() -> None:
    """Stop the running scheduler gracefully."""
    global _scheduler  # noqa: PLW0603

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None


async def _run_daily_publish_job() -> None:
    """Execute the publish pipeline as a scheduled job."""
    logger.info("Scheduled daily publish triggered")
    try:
        settings = require_publish_settings(get_settings())
        result = await run_publish_pipeline(settings)
        logger.info("Scheduled publish complete: %s", result)
    except Exception:
        logger.exception("Scheduled daily publish failed")
