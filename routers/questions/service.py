"""Questions service layer."""

import logging
import math
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from core.errors import ApiError
from models import GuestSessionType
from utils.game_board import BoardParams, BoardUnavailableError, build_game_board, resolve_round
from utils.guest_sessions import check_guest_limit, create_guest_session, get_guest_session
from utils.spoiler import DISABLED_POLICY, get_game_spoiler_policy, policy_for_user

from . import repository as questions_repository

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
SEARCH_MIN_LENGTH = 2


def _split(value):
    return [part for part in (value or "").split(",") if part]


def _user_policy(user):
    return policy_for_user(user) if user else DISABLED_POLICY


def serialize_question(question) -> dict:
    return {
        "id": question.id,
        "question": question.question,
        "answer": question.answer,
        "value": question.value,
        "difficulty": question.difficulty.value,
        "knowledgeCategory": question.knowledge_category.value,
        "round": question.round.value,
        "airDate": question.air_date,
        "season": question.season,
        "wasTripleStumper": question.was_triple_stumper,
        "categoryId": question.category_id,
        "category": {"id": question.category.id, "name": question.category.name},
    }


def serialize_practice_question(question) -> dict:
    return {
        "id": question.id,
        "question": question.question,
        "answer": question.answer,
        "value": question.value,
        "category": question.knowledge_category.value,
        "originalCategory": question.category.name,
        "knowledgeCategory": question.knowledge_category.value,
    }


def _category_rows(rows):
    return [
        {
            "id": category_id,
            "name": name,
            "knowledgeCategory": knowledge.value,
            "_count": {"questions": count},
        }
        for category_id, name, knowledge, count in rows
    ]


def list_categories(db: Session, user, *, knowledge_category=None):
    rows = questions_repository.list_categories_with_counts(
        db, policy=_user_policy(user), knowledge_category=knowledge_category
    )
    return _category_rows(rows)


def search_categories(db: Session, user, *, query, page: int = 1):
    if not query or len(query) < SEARCH_MIN_LENGTH:
        return []
    rows = questions_repository.list_categories_with_counts(
        db,
        policy=_user_policy(user),
        name_contains=query,
        limit=SEARCH_LIMIT,
        offset=(max(page, 1) - 1) * SEARCH_LIMIT,
    )
    return _category_rows(rows)


def get_game_board(db: Session, user, *, game_id=None, mode=None, round_param=None, is_double=False,
                   seed=None, categories=None, category_ids=None, board_date=None, category_filter=None):
    if game_id:
        policy = get_game_spoiler_policy(db, game_id)
    else:
        policy = _user_policy(user)

    params = BoardParams(
        mode=mode,
        round=resolve_round(round_param, is_double),
        seed=seed,
        categories=_split(categories),
        category_ids=_split(category_ids),
        date=board_date,
        category_filter=category_filter,
        game_id=game_id,
    )
    try:
        return build_game_board(db, params, policy, user_id=user.id if user else None)
    except BoardUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def list_questions(db: Session, user, *, category=None, knowledge_category=None, difficulty=None,
                   air_date_from=None, air_date_to=None, page: int = 1, limit: int = 10):
    query = questions_repository.build_question_query(
        db,
        policy=_user_policy(user),
        category=category,
        knowledge_category=knowledge_category,
        difficulty=difficulty,
        air_date_from=air_date_from,
        air_date_to=air_date_to,
    )
    total = query.count()
    questions = questions_repository.page_questions(query, page=page, limit=limit)
    return {
        "questions": [serialize_question(q) for q in questions],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }


def get_question(db: Session, *, question_id: str):
    question = questions_repository.get_question(db, question_id=question_id)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    return {
        "id": question.id,
        "question": question.question,
        "answer": question.answer,
        "value": question.value,
        "category": {"id": question.category.id, "name": question.category.name},
    }


def shuffle_practice_question(db: Session, user, *, category=None, exclude_id=None, round_name=None):
    query = questions_repository.shuffle_query(
        db,
        policy=_user_policy(user),
        knowledge_category=category,
        round_name=round_name,
        exclude_id=exclude_id,
    )
    question = questions_repository.random_question(query)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No questions found")
    return serialize_practice_question(question)


def get_guest_question(db: Session, *, exclude_id=None):
    query = questions_repository.shuffle_query(
        db, policy=DISABLED_POLICY, exclude_id=exclude_id, exclude_final=True
    )
    question = questions_repository.random_question(query)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No questions found")
    return serialize_practice_question(question)


def complete_guest_question(db: Session, *, payload):
    session = get_guest_session(db, payload.guestSessionId) if payload.guestSessionId else None
    current_count = 1 if session else 0

    limit = check_guest_limit(db, GuestSessionType.RANDOM_QUESTION, current_count)
    if not limit.allowed:
        raise ApiError(status.HTTP_403_FORBIDDEN, limit.reason or "Guest limit reached", requiresAuth=True)

    question = questions_repository.get_question(db, question_id=payload.questionId)
    data = {
        "questionId": payload.questionId,
        "correct": payload.correct,
        "points": payload.points,
        "userAnswer": payload.rawAnswer,
        "timestamp": datetime.utcnow().isoformat(),
        "categoryName": question.category.name if question else None,
        "knowledgeCategory": question.knowledge_category.value if question else None,
    }

    if session is not None:
        session.data = data
    else:
        session = create_guest_session(db, GuestSessionType.RANDOM_QUESTION, data)
    db.commit()
    db.refresh(session)

    after = check_guest_limit(db, GuestSessionType.RANDOM_QUESTION, 1)
    logger.info(f"GUEST_QUESTION_COMPLETE | session={session.id} | limit_reached={not after.allowed}")
    return {
        "guestSessionId": session.id,
        "expiresAt": session.expires_at.isoformat(),
        "limitReached": not after.allowed,
    }
