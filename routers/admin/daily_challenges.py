from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_admin_user

from .service import get_daily_challenges_overview as service_get_daily_challenges_overview

router = APIRouter(prefix="/api/admin/daily-challenges", tags=["Admin"])


@router.get("")
def daily_challenges_overview(db: Session = Depends(get_db), admin_user: User = Depends(get_admin_user)):
    return service_get_daily_challenges_overview(db)
