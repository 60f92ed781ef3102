"""Questions schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class GuestQuestionComplete(BaseModel):
    guestSessionId: Optional[str] = None
    questionId: str
    correct: bool
    points: int
    rawAnswer: Optional[str] = None


class GuestQuestionCompleteResponse(BaseModel):
    guestSessionId: str
    expiresAt: str
    limitReached: bool


class PracticeQuestion(BaseModel):
    id: str
    question: str
    answer: str
    value: Optional[int] = None
    category: str = Field(..., description="Knowledge category")
    originalCategory: str
    knowledgeCategory: str
