from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import Difficulty, KnowledgeCategory, User
from routers.dependencies import get_current_user, get_optional_user

from .service import get_question as service_get_question, list_questions as service_list_questions

router = APIRouter(prefix="/api/questions", tags=["Questions"])


@router.get("")
def list_questions(
    category: Optional[str] = Query(None, description="Exact category name"),
    knowledgeCategory: Optional[KnowledgeCategory] = Query(None),
    difficulty: Optional[Difficulty] = Query(None),
    airDateFrom: Optional[date] = Query(None),
    airDateTo: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_list_questions(
        db,
        current_user,
        category=category,
        knowledge_category=knowledgeCategory,
        difficulty=difficulty,
        air_date_from=airDateFrom,
        air_date_to=airDateTo,
        page=page,
        limit=limit,
    )


@router.get("/{question_id}")
def get_question(
    question_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_question(db, question_id=question_id)
