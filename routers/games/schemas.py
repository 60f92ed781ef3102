"""Games schemas."""

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

RoundName = Literal["SINGLE", "DOUBLE", "FINAL"]


class RoundsConfig(BaseModel):
    single: bool = True
    double: bool = True
    final: bool = False


class GameCreate(BaseModel):
    mode: Literal["random", "knowledge", "custom", "date"] = "random"
    categories: Optional[List[str]] = Field(None, description="Knowledge categories (knowledge mode)")
    categoryIds: Optional[List[str]] = Field(None, description="Category ids (custom mode)")
    date: Optional[dt.date] = None
    rounds: RoundsConfig = Field(default_factory=RoundsConfig)
    finalCategoryMode: Optional[Literal["shuffle", "byDate", "specificCategory"]] = None
    finalCategoryId: Optional[str] = Field(None, description="Category id (specificCategory final mode)")
    visibility: Literal["PRIVATE", "UNLISTED", "PUBLIC"] = "PRIVATE"


class GameCreatedResponse(BaseModel):
    id: str
    seed: Optional[str] = None
    status: str
    currentRound: str
    config: Optional[dict] = None


class GameUpdate(BaseModel):
    status: Optional[Literal["IN_PROGRESS", "COMPLETED", "ABANDONED"]] = None
    currentRound: Optional[RoundName] = None
    currentScore: Optional[int] = None
    visibility: Optional[Literal["PRIVATE", "UNLISTED", "PUBLIC"]] = None


class GameStateUpdate(BaseModel):
    """One payload for every state action; fields are checked per action."""

    action: str
    questionId: Optional[str] = None
    correct: Optional[bool] = None
    pointsEarned: Optional[int] = None
    newRound: Optional[RoundName] = None
    finalJeopardyQuestionId: Optional[str] = None
    stage: Optional[Literal["category", "question", "result"]] = None
    wager: Optional[int] = None
    finalScore: Optional[int] = None


class GuestAnswer(BaseModel):
    questionId: str
    answer: str = Field(..., min_length=1)
