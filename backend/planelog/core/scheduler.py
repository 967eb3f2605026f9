"""
Background scheduler for periodic tasks.

- Recount planes: recomputes every user's number_of_planes from the planes
  table so the denormalized counter converges after racing or interrupted writes.
"""

import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from planelog.core.config import settings
from planelog.core.database import SessionLocal
from planelog.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def recount_planes_job():
    """Job body; runs on the scheduler thread with its own session"""
    db = SessionLocal()
    try:
        changed = CredentialStore(db).recount_planes()
        if changed:
            logger.info(f"Recount job completed: corrected {changed} plane counter(s)")
        else:
            logger.info("Recount job completed: all plane counters were accurate")
    except SQLAlchemyError as e:
        # Job will run again at the next interval
        logger.error(f"Error in recount_planes_job: {str(e)}")
        db.rollback()
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler. Called from the FastAPI lifespan."""
    if not scheduler.running:
        scheduler.add_job(
            recount_planes_job,
            trigger=IntervalTrigger(hours=settings.PLANE_RECOUNT_INTERVAL_HOURS),
            id="recount_planes",
            name="Recount plane counters",
            replace_existing=True
        )

        scheduler.start()
        logger.info(
            f"Background scheduler started. Recount job scheduled every "
            f"{settings.PLANE_RECOUNT_INTERVAL_HOURS} hours.")


def stop_scheduler():
    """Stop the background scheduler. Called when the FastAPI app shuts down."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped.")
