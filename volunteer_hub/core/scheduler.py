"""Background job scheduler for participant-count repair."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from volunteer_hub.core.config import settings
from volunteer_hub.core.database import engine
from volunteer_hub.ledger.registrations import recount_participants

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def recount_job():
    """Background recount job."""
    try:
        with Session(engine) as session:
            drifted = recount_participants(session)
            logger.info(f"Background recount completed, {len(drifted)} events repaired")
    except Exception as e:
        logger.error(f"Background recount failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    if settings.recount_interval_minutes <= 0:
        logger.info("Participant recount job disabled")
        return
    scheduler.add_job(
        recount_job,
        trigger=IntervalTrigger(minutes=settings.recount_interval_minutes),
        id="participant_recount",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, recounting every {settings.recount_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
