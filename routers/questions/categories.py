from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import KnowledgeCategory, User
from routers.dependencies import get_optional_user

from .service import (
    get_game_board as service_get_game_board,
    list_categories as service_list_categories,
    search_categories as service_search_categories,
)

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get("")
def list_categories(
    knowledgeCategory: Optional[KnowledgeCategory] = Query(None),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_list_categories(db, current_user, knowledge_category=knowledgeCategory)


@router.get("/search")
def search_categories(
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_search_categories(db, current_user, query=q, page=page)


@router.get("/game")
def get_game_board(
    gameId: Optional[str] = Query(None),
    mode: Optional[Literal["random", "knowledge", "custom", "date", "challenge"]] = Query(None),
    round_param: Optional[Literal["SINGLE", "DOUBLE", "FINAL"]] = Query(None, alias="round"),
    isDouble: bool = Query(False, description="Legacy flag, prefer `round`"),
    seed: Optional[str] = Query(None),
    categories: Optional[str] = Query(None, description="Comma-separated knowledge categories"),
    categoryIds: Optional[str] = Query(None, description="Comma-separated category ids"),
    board_date: Optional[date] = Query(None, alias="date"),
    categoryFilter: Optional[Literal["TRIPLE_STUMPER"]] = Query(None),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_get_game_board(
        db,
        current_user,
        game_id=gameId,
        mode=mode,
        round_param=round_param,
        is_double=isDouble,
        seed=seed,
        categories=categories,
        category_ids=categoryIds,
        board_date=board_date,
        category_filter=categoryFilter,
    )
