"""Audit rows for scheduled job runs (CronJobExecution)."""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.orm import Session

from core.config import CRON_JOB_TIMEOUT_MINUTES
from core.db import get_db_context
from models import CronJobExecution, CronJobStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_cron_execution(db: Session, job_name: str, triggered_by: str = "scheduled") -> str:
    execution = CronJobExecution(
        job_name=job_name,
        status=CronJobStatus.RUNNING,
        triggered_by=triggered_by,
        started_at=datetime.utcnow(),
    )
    db.add(execution)
    db.commit()
    db.refresh(execution)
    return execution.id


def update_cron_execution(
    db: Session,
    execution_id: str,
    status: CronJobStatus,
    result: Optional[dict] = None,
    error: Optional[str] = None,
) -> None:
    execution = db.query(CronJobExecution).filter(CronJobExecution.id == execution_id).first()
    if execution is None:
        logger.warning(f"CRON_EXECUTION_MISSING | id={execution_id}")
        return

    now = datetime.utcnow()
    execution.status = status
    execution.completed_at = now
    execution.duration_ms = int((now - execution.started_at).total_seconds() * 1000)
    if result is not None:
        execution.result = result
    if error:
        execution.error = error
    db.commit()


def with_cron_logging(
    job_name: str,
    triggered_by: str,
    job_fn: Callable[[], T],
    *,
    db: Optional[Session] = None,
) -> T:
    """Run `job_fn` between a RUNNING row and its SUCCESS/FAILED update; errors re-raise."""
    if db is None:
        with get_db_context() as session:
            return with_cron_logging(job_name, triggered_by, job_fn, db=session)

    execution_id = create_cron_execution(db, job_name, triggered_by)
    logger.info(f"CRON_START | job={job_name} | execution={execution_id} | triggered_by={triggered_by}")
    try:
        result = job_fn()
    except Exception as exc:
        db.rollback()
        update_cron_execution(db, execution_id, CronJobStatus.FAILED, error=str(exc))
        logger.error(f"CRON_FAILED | job={job_name} | execution={execution_id} | error={exc}", exc_info=True)
        raise

    update_cron_execution(
        db, execution_id, CronJobStatus.SUCCESS, result=_json_safe({"success": True, "data": result})
    )
    logger.info(f"CRON_SUCCESS | job={job_name} | execution={execution_id}")
    return result


def cleanup_timed_out_jobs(db: Session, *, timeout_minutes: int = CRON_JOB_TIMEOUT_MINUTES) -> int:
    """Mark RUNNING executions older than the timeout as FAILED."""
    cutoff = datetime.utcnow() - timedelta(minutes=timeout_minutes)
    stale = (
        db.query(CronJobExecution)
        .filter(CronJobExecution.status == CronJobStatus.RUNNING, CronJobExecution.started_at < cutoff)
        .all()
    )
    now = datetime.utcnow()
    for execution in stale:
        execution.status = CronJobStatus.FAILED
        execution.completed_at = now
        execution.duration_ms = int((now - execution.started_at).total_seconds() * 1000)
        execution.error = "Job timed out"
    if stale:
        db.commit()
        logger.warning(f"CRON_TIMEOUT_CLEANUP | count={len(stale)} | timeout_minutes={timeout_minutes}")
    return len(stale)


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
