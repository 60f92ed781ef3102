from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .service import (
    get_category_knowledge as service_get_category_knowledge,
    get_category_stats as service_get_category_stats,
    get_history as service_get_history,
    get_round_history as service_get_round_history,
    get_user_stats as service_get_user_stats,
)

router = APIRouter(prefix="/api/stats", tags=["Stats"])


@router.get("")
def user_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_user_stats(db, current_user)


@router.get("/category")
def category_stats(
    name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_category_stats(db, current_user, name=name)


@router.get("/history")
def history(
    history_type: Literal["points", "attempted", "correct", "tripleStumpers"] = Query(..., alias="type"),
    tab: Optional[Literal["correct", "incorrect"]] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_history(db, current_user, history_type=history_type, tab=tab)


@router.get("/category/knowledge")
def category_knowledge(
    name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_category_knowledge(db, name=name)


@router.get("/round-history")
def round_history(
    round_name: Literal["SINGLE", "DOUBLE", "FINAL"] = Query(..., alias="round"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_round_history(db, current_user, round_name=round_name)
