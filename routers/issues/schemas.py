"""Issue report schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from models import IssueCategory


class IssueCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)
    category: IssueCategory
    email: Optional[EmailStr] = None
    pageUrl: Optional[str] = None
    questionId: Optional[str] = None
    gameId: Optional[str] = None

    @field_validator("email", "pageUrl", "questionId", "gameId", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class IssueCreatedResponse(BaseModel):
    success: bool
    issueId: str
