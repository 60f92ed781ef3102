"""Registry of background jobs shared by the scheduler, cron endpoints and admin triggers."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from utils.daily_challenge_setup import fetch_recent_games, fetch_yesterday_questions, generate_upcoming_challenges
from utils.guest_sessions import cleanup_expired_guest_sessions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CronJob:
    key: str
    name: str
    description: str
    schedule: str
    endpoint: Optional[str]
    run: Callable[[Session], dict]

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "schedule": self.schedule,
            "endpoint": self.endpoint,
        }


CRON_JOBS: Dict[str, CronJob] = {
    job.key: job
    for job in (
        CronJob(
            key="daily-challenge",
            name="Daily Challenge Generation",
            description="Generates daily challenges for today and next 7 days",
            schedule="0 2 * * *",
            endpoint="/api/cron/daily-challenge",
            run=lambda db: generate_upcoming_challenges(db),
        ),
        CronJob(
            key="fetch-questions",
            name="Fetch Questions",
            description="Fetches yesterday's Jeopardy questions from J-Archive",
            schedule="0 9 * * *",
            endpoint="/api/cron/fetch-questions",
            run=lambda db: fetch_yesterday_questions(db),
        ),
        CronJob(
            key="fetch-games",
            name="Fetch Games",
            description="Fetches games for the last 7 days (internal cron)",
            schedule="0 3 * * *",
            endpoint=None,
            run=lambda db: fetch_recent_games(db),
        ),
        CronJob(
            key="cleanup-guest-sessions",
            name="Guest Session Cleanup",
            description="Deletes expired, unclaimed guest sessions",
            schedule="30 4 * * *",
            endpoint="/api/cron/cleanup-guest-sessions",
            run=lambda db: cleanup_expired_guest_sessions(db),
        ),
    )
}


def get_cron_job(key: str) -> Optional[CronJob]:
    return CRON_JOBS.get(key)


def run_cron_job(key: str, db: Session) -> dict:
    job = CRON_JOBS.get(key)
    if job is None:
        raise KeyError(f"Unknown cron job: {key}")
    logger.info(f"CRON_RUN | job={key}")
    return job.run(db)
