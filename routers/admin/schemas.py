"""Admin schemas."""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models import IssueReportStatus


class DisputeApprove(BaseModel):
    adminComment: Optional[str] = None
    overrideText: Optional[str] = Field(None, description="Replaces the disputed answer as the accepted text")


class DisputeReject(BaseModel):
    adminComment: Optional[str] = None


class IssueUpdate(BaseModel):
    status: Optional[IssueReportStatus] = None
    adminNote: Optional[str] = Field(None, max_length=5000)


class GuestConfigUpdate(BaseModel):
    randomGameMaxQuestionsBeforeAuth: Optional[int] = Field(None, ge=0)
    randomGameMaxCategoriesBeforeAuth: Optional[int] = Field(None, ge=0)
    randomGameMaxRoundsBeforeAuth: Optional[int] = Field(None, ge=0)
    randomGameMaxGamesBeforeAuth: Optional[int] = Field(None, ge=0)
    randomQuestionMaxQuestionsBeforeAuth: Optional[int] = Field(None, ge=0)
    randomQuestionMaxCategoriesBeforeAuth: Optional[int] = Field(None, ge=0)
    dailyChallengeGuestEnabled: Optional[bool] = None
    dailyChallengeGuestAppearsOnLeaderboard: Optional[bool] = None
    dailyChallengeMinLookbackDays: Optional[int] = Field(None, ge=30, le=1825)
    dailyChallengeSeasons: Optional[List[int]] = None
    timeToAuthenticateMinutes: Optional[int] = Field(None, ge=1)

    @field_validator("dailyChallengeSeasons")
    @classmethod
    def positive_seasons(cls, value):
        if value is not None and any(season < 1 for season in value):
            raise ValueError("Seasons must be positive integers")
        return value


class FetchGameRequest(BaseModel):
    date: Optional[dt.date] = None
    gameId: Optional[str] = None
    season: Optional[int] = Field(None, ge=1)
