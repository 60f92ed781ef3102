from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import KnowledgeCategory, User
from routers.dependencies import get_optional_user

from .schemas import GuestQuestionComplete, GuestQuestionCompleteResponse, PracticeQuestion
from .service import (
    complete_guest_question as service_complete_guest_question,
    get_guest_question as service_get_guest_question,
    shuffle_practice_question as service_shuffle_practice_question,
)

router = APIRouter(prefix="/api/practice", tags=["Practice"])


@router.get("/shuffle", response_model=PracticeQuestion)
def shuffle(
    category: Optional[KnowledgeCategory] = Query(None),
    excludeId: Optional[str] = Query(None),
    round_name: Optional[Literal["SINGLE", "DOUBLE", "FINAL"]] = Query(None, alias="round"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_shuffle_practice_question(
        db, current_user, category=category, exclude_id=excludeId, round_name=round_name
    )


@router.get("/guest-question", response_model=PracticeQuestion)
def guest_question(
    excludeId: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return service_get_guest_question(db, exclude_id=excludeId)


@router.post("/guest-question/complete", response_model=GuestQuestionCompleteResponse)
def complete_guest_question(
    payload: GuestQuestionComplete,
    db: Session = Depends(get_db),
):
    return service_complete_guest_question(db, payload=payload)
