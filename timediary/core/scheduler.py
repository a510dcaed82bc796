"""Background job scheduler for calendar subscription refreshes."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from timediary.calendar.sync import refresh_subscriptions
from timediary.core.config import settings
from timediary.core.database import engine

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def refresh_job(cache):
    """Background refresh job."""
    try:
        with Session(engine) as session:
            stats = refresh_subscriptions(session, cache)
            logger.info(f"Background calendar refresh completed: {stats}")
    except Exception as e:
        logger.error(f"Background calendar refresh failed: {e}")


def start_scheduler(cache):
    """Start the background scheduler."""
    scheduler.add_job(
        refresh_job,
        trigger=IntervalTrigger(minutes=settings.calendar_refresh_minutes),
        args=[cache],
        id="calendar_refresh",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, refreshing calendars every {settings.calendar_refresh_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")
