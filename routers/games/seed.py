from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import GameCreatedResponse
from .service import clone_from_seed as service_clone_from_seed, preview_seed as service_preview_seed

router = APIRouter(prefix="/api/games/by-seed", tags=["Games"])


@router.get("/{seed}")
def preview_seed(seed: str, db: Session = Depends(get_db)):
    return service_preview_seed(db, seed=seed)


@router.post("/{seed}", response_model=GameCreatedResponse, status_code=status.HTTP_201_CREATED)
def clone_from_seed(
    seed: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_clone_from_seed(db, current_user, seed=seed)
