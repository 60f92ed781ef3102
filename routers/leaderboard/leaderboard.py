from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .service import get_high_scores as service_get_high_scores, get_leaderboard as service_get_leaderboard

router = APIRouter(prefix="/api", tags=["Leaderboard"])


@router.get("/leaderboard")
def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_leaderboard(db, limit=limit)


@router.get("/high-scores")
def high_scores(
    limit: int = Query(50, ge=1, le=100),
    timeframe: Literal["all", "week", "month", "year"] = Query("all"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_high_scores(db, limit=limit, timeframe=timeframe)
