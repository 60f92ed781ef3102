from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db

from .schemas import GuestAnswer
from .service import (
    answer_guest_question as service_answer_guest_question,
    get_guest_game_state as service_get_guest_game_state,
    guest_quick_play as service_guest_quick_play,
)

router = APIRouter(prefix="/api/games", tags=["Guest Games"])


@router.post("/guest-quick-play", status_code=status.HTTP_201_CREATED)
def guest_quick_play(db: Session = Depends(get_db)):
    return service_guest_quick_play(db)


@router.post("/guest/{guest_game_id}/answer")
def answer_guest_question(
    guest_game_id: str,
    payload: GuestAnswer,
    db: Session = Depends(get_db),
):
    return service_answer_guest_question(db, guest_game_id=guest_game_id, payload=payload)


@router.get("/guest/{guest_game_id}/state")
def guest_game_state(guest_game_id: str, db: Session = Depends(get_db)):
    return service_get_guest_game_state(db, guest_game_id=guest_game_id)
