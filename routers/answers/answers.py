from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import DisputeCreate, GradeRequest, GradeResponse
from .service import (
    create_dispute as service_create_dispute,
    grade_answer as service_grade_answer,
    list_disputes as service_list_disputes,
)

router = APIRouter(prefix="/api/answers", tags=["Answers"])


@router.post("/grade", response_model=GradeResponse)
def grade_answer(
    payload: GradeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_grade_answer(db, current_user, payload=payload)


@router.post("/disputes", status_code=status.HTTP_201_CREATED)
def create_dispute(
    payload: DisputeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_create_dispute(db, current_user, payload=payload)


@router.get("/disputes")
def list_disputes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_list_disputes(db, current_user)
