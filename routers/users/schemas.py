"""Users schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class DisplayNameUpdate(BaseModel):
    displayName: Optional[str] = Field(None, description="New display name (3-20 characters)")
    selectedIcon: Optional[str] = Field(None, max_length=16)


class SpoilerSettingsUpdate(BaseModel):
    spoilerBlockDate: Optional[date] = None
    spoilerBlockEnabled: Optional[bool] = None
    lastSpoilerPrompt: Optional[datetime] = None


class SpoilerSettingsResponse(BaseModel):
    spoilerBlockDate: Optional[date] = None
    spoilerBlockEnabled: bool
    lastSpoilerPrompt: Optional[datetime] = None


class ActivityRequest(BaseModel):
    path: Optional[str] = None


class IconUpdate(BaseModel):
    icon: Optional[str] = Field(None, max_length=16, description="Emoji avatar; null clears it")


class StreakResponse(BaseModel):
    currentStreak: int
    longestStreak: int
    lastGameDate: Optional[date] = None
