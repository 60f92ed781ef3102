from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_admin_user

from .schemas import FetchGameRequest
from .service import (
    import_jarchive_game as service_import_jarchive_game,
    preview_jarchive_game as service_preview_jarchive_game,
)

router = APIRouter(prefix="/api/admin/fetch-game", tags=["Admin"])


@router.get("")
def preview_game(
    date_param: Optional[str] = Query(None, alias="date"),
    gameId: Optional[str] = Query(None),
    admin_user: User = Depends(get_admin_user),
):
    return service_preview_jarchive_game(date_value=date_param, game_id=gameId)


@router.post("")
def import_game(
    payload: FetchGameRequest,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    return service_import_jarchive_game(db, admin_user, payload=payload)
