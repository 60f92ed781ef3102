from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import DisputeMode, DisputeStatus, User
from routers.dependencies import get_admin_user

from .schemas import DisputeApprove, DisputeReject
from .service import (
    approve_dispute as service_approve_dispute,
    get_dispute_stats as service_get_dispute_stats,
    list_disputes as service_list_disputes,
    reject_dispute as service_reject_dispute,
)

router = APIRouter(prefix="/api/admin/disputes", tags=["Admin"])


@router.get("")
def list_disputes(
    status_filter: Optional[DisputeStatus] = Query(None, alias="status"),
    mode: Optional[DisputeMode] = Query(None),
    page: int = Query(1, ge=1),
    pageSize: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_list_disputes(db, status_filter=status_filter, mode=mode, page=page, page_size=pageSize)


@router.get("/stats")
def dispute_stats(db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_get_dispute_stats(db)


@router.post("/{dispute_id}/approve")
def approve_dispute(
    dispute_id: str,
    payload: DisputeApprove,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_approve_dispute(db, admin_user, dispute_id=dispute_id, payload=payload)


@router.post("/{dispute_id}/reject")
def reject_dispute(
    dispute_id: str,
    payload: DisputeReject,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_reject_dispute(db, admin_user, dispute_id=dispute_id, payload=payload)
