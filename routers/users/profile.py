from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import (
    ActivityRequest,
    DisplayNameUpdate,
    IconUpdate,
    SpoilerSettingsResponse,
    SpoilerSettingsUpdate,
    StreakResponse,
)
from .service import (
    check_profile_achievement as service_check_profile_achievement,
    get_display_name as service_get_display_name,
    get_me as service_get_me,
    get_spoiler_settings as service_get_spoiler_settings,
    get_streak as service_get_streak,
    record_activity as service_record_activity,
    reset_progress as service_reset_progress,
    update_display_name as service_update_display_name,
    update_icon as service_update_icon,
    update_spoiler_settings as service_update_spoiler_settings,
)

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return service_get_me(current_user)


@router.get("/display-name")
def get_display_name(current_user: User = Depends(get_current_user)):
    return service_get_display_name(current_user)


@router.post("/display-name")
@router.patch("/display-name")
def update_display_name(
    payload: DisplayNameUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_update_display_name(
        db, current_user, display_name=payload.displayName, selected_icon=payload.selectedIcon
    )


@router.get("/spoiler-settings", response_model=SpoilerSettingsResponse)
def get_spoiler_settings(current_user: User = Depends(get_current_user)):
    return service_get_spoiler_settings(current_user)


@router.post("/spoiler-settings", response_model=SpoilerSettingsResponse)
def update_spoiler_settings(
    payload: SpoilerSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_update_spoiler_settings(db, current_user, payload=payload)


@router.get("/streak", response_model=StreakResponse)
def get_streak(current_user: User = Depends(get_current_user)):
    return service_get_streak(current_user)


@router.post("/activity")
def record_activity(
    payload: ActivityRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_record_activity(db, current_user, path=payload.path)


@router.post("/update-icon")
def update_icon(
    payload: IconUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_update_icon(db, current_user, icon=payload.icon)


@router.post("/reset")
def reset_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_reset_progress(db, current_user)


@router.post("/check-profile-achievement")
def check_profile_achievement(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_check_profile_achievement(db, current_user)
