from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_optional_user

from .schemas import IssueCreate, IssueCreatedResponse
from .service import create_issue as service_create_issue

router = APIRouter(prefix="/api/issues", tags=["Issues"])


@router.post("", response_model=IssueCreatedResponse, status_code=status.HTTP_201_CREATED)
def report_issue(
    payload: IssueCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    return service_create_issue(
        db, current_user, payload=payload, user_agent=request.headers.get("user-agent")
    )
