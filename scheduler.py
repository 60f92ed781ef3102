from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import logging
import pytz

from config import APP_TIMEZONE
from core.cron_logger import with_cron_logging
from core.db import get_db_context
from utils.cron_jobs import CRON_JOBS, run_cron_job

logger = logging.getLogger(__name__)

# Create a global scheduler instance that can be accessed by other modules
scheduler = BackgroundScheduler(timezone=pytz.timezone(APP_TIMEZONE))


def run_scheduled_job(job_name: str):
    """Run one registry job in its own session with an audit row."""
    logger.info(f"Running scheduled task: {job_name}")
    try:
        with get_db_context() as db:
            with_cron_logging(job_name, "scheduled", lambda: run_cron_job(job_name, db), db=db)
    except Exception as e:
        # the FAILED row is already written by with_cron_logging
        logger.error(f"SCHEDULED_JOB_FAILED | job={job_name} | error={e}")


def schedule_jobs():
    for key, job in CRON_JOBS.items():
        if not job.schedule:
            continue
        scheduler.add_job(
            run_scheduled_job,
            CronTrigger.from_crontab(job.schedule, timezone=pytz.timezone(APP_TIMEZONE)),
            args=[key],
            id=key,
            name=job.name,
            replace_existing=True,
            misfire_grace_time=300,
        )
        logger.info(f"Scheduled {key} with cron '{job.schedule}'")


def start_scheduler():
    """
    Start the background scheduler.
    This should be called when the application starts.
    """
    if not scheduler.running:
        schedule_jobs()
        scheduler.start()
        logger.info("Scheduler started successfully")
    else:
        logger.warning("Scheduler is already running")


def stop_scheduler():
    """
    Stop the background scheduler.
    This should be called when the application shuts down.
    """
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped successfully")
    else:
        logger.warning("Scheduler is not running")


# For testing
if __name__ == "__main__":
    start_scheduler()
