from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import IssueCategory, IssueReportStatus, User
from routers.dependencies import get_admin_user

from .schemas import IssueUpdate
from .service import (
    get_issue_stats as service_get_issue_stats,
    list_issues as service_list_issues,
    update_issue as service_update_issue,
)

router = APIRouter(prefix="/api/admin/issues", tags=["Admin"])


@router.get("")
def list_issues(
    status_filter: Optional[IssueReportStatus] = Query(None, alias="status"),
    category: Optional[IssueCategory] = Query(None),
    page: int = Query(1, ge=1),
    pageSize: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_list_issues(db, status_filter=status_filter, category=category, page=page, page_size=pageSize)


@router.get("/stats")
def issue_stats(db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_get_issue_stats(db)


@router.patch("/{issue_id}")
def update_issue(
    issue_id: str,
    payload: IssueUpdate,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_update_issue(db, admin_user, issue_id=issue_id, payload=payload)
