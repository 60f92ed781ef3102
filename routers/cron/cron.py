from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from core.db import get_db
from routers.dependencies import verify_cron_secret

from .service import run_job as service_run_job

router = APIRouter(prefix="/api/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


def _skip(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


@router.get("/daily-challenge")
def daily_challenge(
    x_skip_cron_logging: Optional[str] = Header(None),
    x_triggered_by: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    return service_run_job(
        db,
        job_name="daily-challenge",
        triggered_by=x_triggered_by or "scheduled",
        skip_logging=_skip(x_skip_cron_logging),
    )


@router.get("/fetch-questions")
def fetch_questions(
    x_skip_cron_logging: Optional[str] = Header(None),
    x_triggered_by: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    return service_run_job(
        db,
        job_name="fetch-questions",
        triggered_by=x_triggered_by or "scheduled",
        skip_logging=_skip(x_skip_cron_logging),
    )


@router.get("/cleanup-guest-sessions")
def cleanup_guest_sessions(
    x_skip_cron_logging: Optional[str] = Header(None),
    x_triggered_by: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    return service_run_job(
        db,
        job_name="cleanup-guest-sessions",
        triggered_by=x_triggered_by or "scheduled",
        skip_logging=_skip(x_skip_cron_logging),
    )
