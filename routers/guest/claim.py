from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import ApiError
from models import User
from routers.dependencies import get_current_user
from utils.guest_sessions import claim_guest_session

from .schemas import ClaimRequest

router = APIRouter(prefix="/api/guest-sessions", tags=["Guest Sessions"])


@router.post("/claim")
def claim_session(
    payload: ClaimRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Convert a guest session into the signed-in user's records."""
    result = claim_guest_session(db, payload.guestSessionId, current_user.id)
    if not result.get("success"):
        raise ApiError(status.HTTP_400_BAD_REQUEST, result.get("error") or "Failed to claim session")
    return {
        "success": True,
        "gameId": result.get("gameId"),
        "challengeId": result.get("challengeId"),
        "redirectPath": result.get("redirectPath"),
    }
