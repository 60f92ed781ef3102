"""Users service layer."""

import logging
from datetime import datetime, timedelta

from fastapi import HTTPException, status

from core.config import ACTIVITY_THROTTLE_SECONDS
from core.errors import ApiError
from utils.achievements import PROFILE_UPDATED, AchievementEvent, check_and_unlock_achievements, describe_unlocked
from utils.display_name import generate_random_display_name, validate_display_name

from . import repository as users_repository

logger = logging.getLogger(__name__)

DEFAULT_ICON = "\U0001F464"


def serialize_user(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
        "selectedIcon": user.selected_icon,
        "role": user.role.value,
        "spoilerBlockEnabled": user.spoiler_block_enabled,
        "spoilerBlockDate": user.spoiler_block_date,
        "currentStreak": user.current_streak,
        "longestStreak": user.longest_streak,
        "lastGameDate": user.last_game_date,
        "createdAt": user.created_at,
    }


def get_me(user):
    return {"user": serialize_user(user)}


def get_display_name(user):
    return {
        "displayName": user.display_name or generate_random_display_name(),
        "selectedIcon": user.selected_icon or DEFAULT_ICON,
    }


def update_display_name(db, user, *, display_name, selected_icon=None):
    if display_name is not None:
        result = validate_display_name(display_name)
        if not result.ok:
            raise ApiError(status.HTTP_400_BAD_REQUEST, result.message, reason=result.code)
        user.display_name = result.normalized
    if selected_icon is not None:
        user.selected_icon = selected_icon
    db.commit()
    db.refresh(user)
    logger.info(f"DISPLAY_NAME_UPDATED | user_id={user.id}")
    return {"displayName": user.display_name, "selectedIcon": user.selected_icon}


def get_spoiler_settings(user):
    return {
        "spoilerBlockDate": user.spoiler_block_date,
        "spoilerBlockEnabled": user.spoiler_block_enabled,
        "lastSpoilerPrompt": user.last_spoiler_prompt,
    }


def update_spoiler_settings(db, user, *, payload):
    fields = payload.model_fields_set
    if "spoilerBlockDate" in fields:
        user.spoiler_block_date = payload.spoilerBlockDate
    if payload.spoilerBlockEnabled is not None:
        user.spoiler_block_enabled = payload.spoilerBlockEnabled
    if payload.lastSpoilerPrompt is not None:
        user.last_spoiler_prompt = payload.lastSpoilerPrompt
    db.commit()
    db.refresh(user)
    return get_spoiler_settings(user)


def get_streak(user):
    return {
        "currentStreak": user.current_streak or 0,
        "longestStreak": user.longest_streak or 0,
        "lastGameDate": user.last_game_date,
    }


def record_activity(db, user, *, path, now=None):
    if not path or not isinstance(path, str):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="path is required and must be a string",
        )
    now = now or datetime.utcnow()
    if user.last_online_at and user.last_online_at > now - timedelta(seconds=ACTIVITY_THROTTLE_SECONDS):
        return {"success": True, "skipped": True}
    user.last_online_at = now
    user.last_seen_path = path
    db.commit()
    return {"success": True}


def update_icon(db, user, *, icon):
    user.selected_icon = icon
    db.commit()
    db.refresh(user)
    return {"selectedIcon": user.selected_icon}


def reset_progress(db, user):
    deleted = users_repository.delete_answer_history(db, user_id=user.id)
    db.commit()
    logger.info(f"USER_RESET | user_id={user.id} | history_deleted={deleted}")
    return {"success": True}


def check_profile_achievement(db, user):
    unlocked = check_and_unlock_achievements(db, user, AchievementEvent(PROFILE_UPDATED))
    return {"unlocked": bool(unlocked), "achievements": describe_unlocked(unlocked)}
