from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .service import (
    get_leaderboard_achievements as service_get_leaderboard_achievements,
    list_achievements as service_list_achievements,
)

router = APIRouter(prefix="/api", tags=["Achievements"])


@router.get("/achievements")
def list_achievements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_list_achievements(db, current_user)


@router.get("/leaderboard/achievements")
def leaderboard_achievements(
    userIds: Optional[str] = Query(None, description="Comma-separated user ids"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Showcase achievement icons for each listed user."""
    return service_get_leaderboard_achievements(db, user_ids=userIds)
