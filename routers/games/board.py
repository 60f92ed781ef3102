from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_optional_user

from .service import get_final_clue as service_get_final_clue, list_available_dates as service_list_available_dates

router = APIRouter(prefix="/api/game", tags=["Games"])


@router.get("/final")
def get_final_clue(
    gameId: Optional[str] = Query(None),
    questionId: Optional[str] = Query(None, description="Resume with a previously selected clue"),
    mode: Optional[Literal["random", "knowledge", "custom", "date"]] = Query(None),
    finalCategoryMode: Optional[Literal["shuffle", "byDate", "specificCategory"]] = Query(None),
    finalCategoryId: Optional[str] = Query(None),
    categories: Optional[str] = Query(None, description="Comma-separated knowledge categories"),
    categoryIds: Optional[str] = Query(None, description="Comma-separated category ids"),
    final_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_get_final_clue(
        db,
        current_user,
        game_id=gameId,
        question_id=questionId,
        mode=mode,
        final_category_mode=finalCategoryMode,
        final_category_id=finalCategoryId,
        categories=categories,
        category_ids=categoryIds,
        final_date=final_date,
    )


@router.get("/available-dates")
def available_dates(db: Session = Depends(get_db)):
    return service_list_available_dates(db)
