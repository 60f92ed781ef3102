from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user, get_optional_user

from .schemas import ArchiveAnswer, ChallengeAnswer
from .service import (
    get_archive as service_get_archive,
    get_daily_challenge as service_get_daily_challenge,
    get_leaderboard as service_get_leaderboard,
    get_stats as service_get_stats,
    submit_answer as service_submit_answer,
    submit_archive_answer as service_submit_archive_answer,
)

router = APIRouter(prefix="/api/daily-challenge", tags=["Daily Challenge"])


@router.get("")
def get_daily_challenge(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_get_daily_challenge(db, current_user)


@router.post("")
def submit_answer(
    payload: ChallengeAnswer,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_submit_answer(db, current_user, answer=payload.answer)


@router.get("/leaderboard")
def leaderboard(
    date_param: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD, defaults to the active day"),
    db: Session = Depends(get_db),
):
    return service_get_leaderboard(db, date_param=date_param)


@router.get("/archive")
def archive(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_get_archive(db, current_user)


@router.post("/archive/submit")
def submit_archive_answer(
    payload: ArchiveAnswer,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_submit_archive_answer(
        db, current_user, challenge_id=payload.challengeId, answer=payload.answer
    )


@router.get("/stats")
def stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_stats(db, current_user)
