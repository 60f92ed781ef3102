"""Daily challenge schemas."""

from pydantic import BaseModel, Field


class ChallengeAnswer(BaseModel):
    answer: str = Field(..., min_length=1)


class ArchiveAnswer(BaseModel):
    challengeId: str
    answer: str = Field(..., min_length=1)
