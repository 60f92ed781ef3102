from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import GameStateUpdate
from .service import update_game_state as service_update_game_state

router = APIRouter(prefix="/api/games", tags=["Games"])


@router.patch("/{game_id}/state")
def update_game_state(
    game_id: str,
    payload: GameStateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Apply one of: answer, advance_round, complete, update_final_jeopardy."""
    return service_update_game_state(db, current_user, game_id=game_id, payload=payload)
