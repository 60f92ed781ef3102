"""Issue report service layer."""

import logging

from fastapi import HTTPException, status

from . import repository as issues_repository

logger = logging.getLogger(__name__)


def create_issue(db, user, *, payload, user_agent=None):
    if user is None and not payload.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Email is required for unauthenticated users")
    if payload.questionId and not issues_repository.question_exists(db, question_id=payload.questionId):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question not found")
    if payload.gameId and not issues_repository.game_exists(db, game_id=payload.gameId):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Game not found")

    issue = issues_repository.create_issue(
        db,
        user_id=user.id if user else None,
        email=payload.email,
        subject=payload.subject.strip(),
        message=payload.message.strip(),
        category=payload.category,
        page_url=payload.pageUrl,
        question_id=payload.questionId,
        game_id=payload.gameId,
        user_agent=user_agent,
    )
    db.commit()
    logger.info(f"ISSUE_REPORTED | issue_id={issue.id} | category={payload.category.value} | user_id={user.id if user else None}")
    return {"success": True, "issueId": issue.id}
