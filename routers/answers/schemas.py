"""Answers schemas."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Mode = Literal["GAME", "PRACTICE"]
RoundName = Literal["SINGLE", "DOUBLE", "FINAL"]


class GradeRequest(BaseModel):
    questionId: str
    mode: Mode
    round: RoundName
    userAnswer: str = Field(..., min_length=1)
    gameId: Optional[str] = None
    pointsEarned: Optional[int] = Field(None, description="Displayed clue value in game mode")


class DisputeContext(BaseModel):
    questionId: str
    gameId: Optional[str] = None
    round: RoundName
    userAnswer: str
    mode: Mode


class GradeResponse(BaseModel):
    correct: bool
    storedPoints: int
    canDispute: bool
    disputeContext: Optional[DisputeContext] = None
    unlockedAchievements: List[dict] = Field(default_factory=list)


class DisputeCreate(BaseModel):
    questionId: str
    gameId: Optional[str] = None
    mode: Mode
    round: RoundName
    userAnswer: str = Field(..., min_length=1)
    systemWasCorrect: bool = False
