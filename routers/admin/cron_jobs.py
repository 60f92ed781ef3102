from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import CronJobStatus, User
from routers.dependencies import get_admin_user

from .service import list_cron_jobs as service_list_cron_jobs, trigger_cron_job as service_trigger_cron_job

router = APIRouter(prefix="/api/admin/cron-jobs", tags=["Admin"])


@router.get("")
def list_cron_jobs(
    jobName: Optional[str] = Query(None),
    status_filter: Optional[CronJobStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_list_cron_jobs(db, job_name=jobName, status_filter=status_filter, limit=limit)


@router.post("/{job_name}/trigger")
def trigger_cron_job(job_name: str, db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_trigger_cron_job(db, admin_user, job_name=job_name)
