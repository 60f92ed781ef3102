from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_admin_user

from .schemas import GuestConfigUpdate
from .service import (
    get_guest_config as service_get_guest_config,
    get_guest_stats as service_get_guest_stats,
    update_guest_config as service_update_guest_config,
)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/guest-config")
def get_guest_config(db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_get_guest_config(db)


@router.put("/guest-config")
def update_guest_config(
    payload: GuestConfigUpdate,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_update_guest_config(db, admin_user, payload=payload)


@router.get("/guest-stats")
def guest_stats(db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_get_guest_stats(db)
