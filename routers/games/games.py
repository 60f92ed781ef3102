from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user, get_optional_user

from .schemas import GameCreate, GameCreatedResponse, GameUpdate
from .service import (
    abandon_game as service_abandon_game,
    create_game as service_create_game,
    get_approved_disputes as service_get_approved_disputes,
    get_game as service_get_game,
    list_completed_games as service_list_completed_games,
    list_resumable_games as service_list_resumable_games,
    quick_play as service_quick_play,
    update_game as service_update_game,
)

router = APIRouter(prefix="/api/games", tags=["Games"])


@router.post("", response_model=GameCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_game(
    payload: GameCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_create_game(db, current_user, payload=payload)


@router.post("/quick-play", response_model=GameCreatedResponse, status_code=status.HTTP_201_CREATED)
def quick_play(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_quick_play(db, current_user)


@router.get("/resumable")
def resumable_games(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_list_resumable_games(db, current_user)


@router.get("/completed")
def completed_games(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_list_completed_games(db, current_user)


@router.get("/{game_id}/approved-disputes")
def approved_disputes(
    game_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_get_approved_disputes(db, current_user, game_id=game_id)


@router.get("/{game_id}")
def get_game(
    game_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_get_game(db, current_user, game_id=game_id)


@router.patch("/{game_id}")
def update_game(
    game_id: str,
    payload: GameUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_update_game(db, current_user, game_id=game_id, payload=payload)


@router.delete("/{game_id}")
def delete_game(
    game_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_abandon_game(db, current_user, game_id=game_id)
