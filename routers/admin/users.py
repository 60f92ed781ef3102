from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_admin_user

from .service import delete_user as service_delete_user, list_users as service_list_users

router = APIRouter(prefix="/api/admin/users", tags=["Admin"])


@router.get("")
def list_users(
    search: Optional[str] = Query(None, max_length=200),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_list_users(db, search=search, limit=limit, offset=offset)


@router.delete("/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_delete_user(db, admin_user, user_id=user_id)
