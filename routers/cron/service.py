"""Cron endpoint service layer."""

import logging

from fastapi import HTTPException, status

from core.cron_logger import with_cron_logging
from utils.cron_jobs import run_cron_job
from utils.logging_helpers import log_error

logger = logging.getLogger(__name__)


def run_job(db, *, job_name: str, triggered_by: str = "scheduled", skip_logging: bool = False) -> dict:
    """Run a registered job, with an audit row unless the caller already records one."""
    try:
        if skip_logging:
            result = run_cron_job(job_name, db)
        else:
            result = with_cron_logging(job_name, triggered_by, lambda: run_cron_job(job_name, db), db=db)
    except Exception as e:
        log_error(logger, "CRON_ENDPOINT_FAILED", job=job_name, triggered_by=triggered_by, error=e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Job {job_name} failed: {e}"
        ) from e

    if isinstance(result, dict):
        return {"success": True, **result}
    return {"success": True, "data": result}
