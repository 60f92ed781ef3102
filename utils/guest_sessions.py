"""
Guest sessions: anonymous play that can be claimed after sign-in.

Three kinds exist. RANDOM_QUESTION stores a single practice answer in
`data`. DAILY_CHALLENGE stores a daily answer in `data`. RANDOM_GAME owns a
GuestGame board. Claiming copies the anonymous records onto the
authenticated user and marks the session claimed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import (
    Category, Game, GameHistory, GameQuestion, GameStatus, GuestConfig, GuestSession, GuestSessionType,
    Question, UserDailyChallenge,
)
from utils.game_config import generate_seed
from utils.game_progress import update_game_history, upsert_user_progress

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_ID = "default"

GUEST_CONFIG_FIELDS = {
    "randomGameMaxQuestionsBeforeAuth": "random_game_max_questions_before_auth",
    "randomGameMaxCategoriesBeforeAuth": "random_game_max_categories_before_auth",
    "randomGameMaxRoundsBeforeAuth": "random_game_max_rounds_before_auth",
    "randomGameMaxGamesBeforeAuth": "random_game_max_games_before_auth",
    "randomQuestionMaxQuestionsBeforeAuth": "random_question_max_questions_before_auth",
    "randomQuestionMaxCategoriesBeforeAuth": "random_question_max_categories_before_auth",
    "dailyChallengeGuestEnabled": "daily_challenge_guest_enabled",
    "dailyChallengeGuestAppearsOnLeaderboard": "daily_challenge_guest_appears_on_leaderboard",
    "dailyChallengeMinLookbackDays": "daily_challenge_min_lookback_days",
    "dailyChallengeSeasons": "daily_challenge_seasons",
    "timeToAuthenticateMinutes": "time_to_authenticate_minutes",
}


@dataclass
class LimitCheck:
    allowed: bool
    reason: Optional[str] = None


def get_guest_config(db: Session) -> GuestConfig:
    config = db.query(GuestConfig).first()
    if config is None:
        config = GuestConfig(id=DEFAULT_CONFIG_ID)
        db.add(config)
        db.commit()
        db.refresh(config)
    return config


def serialize_guest_config(config: GuestConfig) -> dict:
    payload = {api_name: getattr(config, attr) for api_name, attr in GUEST_CONFIG_FIELDS.items()}
    payload["id"] = config.id
    return payload


def update_guest_config(db: Session, changes: dict) -> GuestConfig:
    """Apply already-validated camelCase changes."""
    config = get_guest_config(db)
    for api_name, value in changes.items():
        attr = GUEST_CONFIG_FIELDS.get(api_name)
        if attr is not None:
            setattr(config, attr, value)
    db.commit()
    db.refresh(config)
    return config


def create_guest_session(db: Session, session_type: GuestSessionType, data: Optional[dict] = None) -> GuestSession:
    config = get_guest_config(db)
    session = GuestSession(
        type=session_type,
        data=data,
        expires_at=datetime.utcnow() + timedelta(minutes=config.time_to_authenticate_minutes),
    )
    db.add(session)
    db.flush()
    return session


def is_session_usable(session: Optional[GuestSession], now: Optional[datetime] = None) -> bool:
    if session is None:
        return False
    if (now or datetime.utcnow()) > session.expires_at:
        return False
    return session.claimed_at is None and session.claimed_by_user_id is None


def get_guest_session(db: Session, session_id: str) -> Optional[GuestSession]:
    """The session if it exists, has not expired and is unclaimed."""
    session = db.query(GuestSession).filter(GuestSession.id == session_id).first()
    return session if is_session_usable(session) else None


def mark_guest_session_claimed(session: GuestSession, user_id: str) -> None:
    session.claimed_at = datetime.utcnow()
    session.claimed_by_user_id = user_id


def _practice_redirect(db: Session, knowledge_category: str, category_name: str, question_id: str) -> str:
    category = db.query(Category).filter(Category.name == category_name).first()
    path = f"/practice/category?knowledgeCategory={quote(str(knowledge_category))}"
    if category is not None:
        path += f"&category={quote(category.id)}"
    return f"{path}&question={question_id}"


def _claim_random_question(db: Session, session: GuestSession, user_id: str) -> dict:
    data = session.data or {}
    redirect_path = None
    question_id = data.get("questionId")
    points = data.get("points")
    has_points = isinstance(points, (int, float)) and not isinstance(points, bool)
    if question_id and isinstance(data.get("correct"), bool) and has_points:
        question = db.query(Question).filter(Question.id == question_id).first()
        if question is not None:
            update_game_history(
                db,
                user_id=user_id,
                question_id=question_id,
                correct=data["correct"],
                points=int(points),
                user_answer=data.get("userAnswer"),
            )
            redirect_path = _practice_redirect(
                db,
                data.get("knowledgeCategory") or question.knowledge_category.value,
                data.get("categoryName") or question.category.name,
                question_id,
            )
    mark_guest_session_claimed(session, user_id)
    return {"success": True, "redirectPath": redirect_path}


def _claim_daily_challenge(db: Session, session: GuestSession, user_id: str) -> dict:
    data = session.data or {}
    challenge_id = data.get("challengeId")
    if challenge_id and isinstance(data.get("correct"), bool):
        existing = (
            db.query(UserDailyChallenge)
            .filter(UserDailyChallenge.user_id == user_id, UserDailyChallenge.challenge_id == challenge_id)
            .first()
        )
        if existing is None:
            db.add(UserDailyChallenge(
                user_id=user_id,
                challenge_id=challenge_id,
                correct=data["correct"],
                user_answer=data.get("userAnswer"),
            ))
    mark_guest_session_claimed(session, user_id)
    return {"success": True, "challengeId": challenge_id, "redirectPath": "/daily-challenge"}


def _claim_random_game(db: Session, session: GuestSession, user_id: str) -> dict:
    guest_game = session.guest_game
    if guest_game is None:
        return {"success": False, "error": "Guest game not found"}

    game = Game(
        user_id=user_id,
        seed=guest_game.seed or generate_seed(),
        config=guest_game.config,
        status=guest_game.status,
        current_round=guest_game.current_round,
        current_score=guest_game.current_score,
        score=guest_game.current_score,
        completed=guest_game.status == GameStatus.COMPLETED,
    )
    db.add(game)
    db.flush()

    for guest_question in guest_game.questions:
        db.add(GameQuestion(
            game_id=game.id,
            question_id=guest_question.question_id,
            answered=guest_question.answered,
            correct=guest_question.correct,
        ))
        if not guest_question.answered or guest_question.correct is None:
            continue

        question = guest_question.question
        value = question.value or 0
        points = value if guest_question.correct else -value
        db.add(GameHistory(
            user_id=user_id,
            question_id=question.id,
            correct=guest_question.correct,
            points=points,
        ))
        upsert_user_progress(
            db,
            user_id=user_id,
            question=question,
            correct_increment=1 if guest_question.correct else 0,
            total_increment=1,
            points=points,
        )

    mark_guest_session_claimed(session, user_id)
    return {"success": True, "gameId": game.id}


_CLAIM_HANDLERS = {
    GuestSessionType.RANDOM_QUESTION: _claim_random_question,
    GuestSessionType.DAILY_CHALLENGE: _claim_daily_challenge,
    GuestSessionType.RANDOM_GAME: _claim_random_game,
}


def claim_guest_session(db: Session, session_id: str, user_id: str) -> dict:
    """Convert a guest session into canonical records for `user_id` in one transaction."""
    session = get_guest_session(db, session_id)
    if session is None:
        return {"success": False, "error": "Session not found, expired, or already claimed"}

    handler = _CLAIM_HANDLERS.get(session.type)
    if handler is None:
        return {"success": False, "error": f"Unknown session type: {session.type}"}

    try:
        result = handler(db, session, user_id)
        if not result.get("success"):
            db.rollback()
            return result
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"GUEST_CLAIM_FAILED | session={session_id} | user_id={user_id} | error={e}", exc_info=True)
        return {"success": False, "error": "Failed to claim session"}

    logger.info(f"GUEST_CLAIMED | session={session_id} | type={session.type.value} | user_id={user_id}")
    return result


def check_guest_limit(
    db: Session,
    session_type: GuestSessionType,
    current_count: int,
    category_count: Optional[int] = None,
    round_count: Optional[int] = None,
) -> LimitCheck:
    config = get_guest_config(db)

    if session_type == GuestSessionType.RANDOM_QUESTION:
        max_questions = config.random_question_max_questions_before_auth
        if current_count >= max_questions:
            return LimitCheck(False, f"Maximum {max_questions} question(s) allowed before sign-in")
        max_categories = config.random_question_max_categories_before_auth
        if max_categories and category_count and category_count >= max_categories:
            return LimitCheck(False, f"Maximum {max_categories} categor(ies) allowed before sign-in")
        return LimitCheck(True)

    if session_type == GuestSessionType.RANDOM_GAME:
        max_questions = config.random_game_max_questions_before_auth
        if current_count >= max_questions:
            return LimitCheck(False, f"Maximum {max_questions} question(s) allowed before sign-in")
        max_categories = config.random_game_max_categories_before_auth
        if max_categories and category_count and category_count >= max_categories:
            return LimitCheck(False, f"Maximum {max_categories} categor(ies) allowed before sign-in")
        max_rounds = config.random_game_max_rounds_before_auth
        if max_rounds and round_count and round_count >= max_rounds:
            return LimitCheck(False, f"Maximum {max_rounds} round(s) allowed before sign-in")
        return LimitCheck(True)

    if session_type == GuestSessionType.DAILY_CHALLENGE:
        if current_count >= 1:
            return LimitCheck(False, "Daily challenge requires sign-in")
        return LimitCheck(True)

    return LimitCheck(False, "Unknown session type")


def get_guest_session_stats(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    day_ago = now - timedelta(hours=24)

    active_filter = (
        GuestSession.expires_at > now,
        GuestSession.claimed_at.is_(None),
        GuestSession.claimed_by_user_id.is_(None),
    )
    active = db.query(func.count(GuestSession.id)).filter(*active_filter).scalar() or 0
    claimed = db.query(func.count(GuestSession.id)).filter(GuestSession.claimed_at.isnot(None)).scalar() or 0
    expired = (
        db.query(func.count(GuestSession.id))
        .filter(GuestSession.expires_at <= now, GuestSession.claimed_at.is_(None))
        .scalar()
        or 0
    )

    by_type_rows = (
        db.query(GuestSession.type, func.count(GuestSession.id))
        .filter(GuestSession.expires_at > now, GuestSession.claimed_at.is_(None))
        .group_by(GuestSession.type)
        .all()
    )

    recent_unclaimed = (
        db.query(func.count(GuestSession.id))
        .filter(GuestSession.created_at >= day_ago, GuestSession.expires_at > now, GuestSession.claimed_at.is_(None))
        .scalar()
        or 0
    )
    recent_claimed = (
        db.query(func.count(GuestSession.id)).filter(GuestSession.claimed_at >= day_ago).scalar() or 0
    )
    recent_total = recent_unclaimed + recent_claimed

    return {
        "active": active,
        "unclaimed": active,
        "claimed": claimed,
        "expired": expired,
        "byType": {row_type.value: count for row_type, count in by_type_rows},
        "recent": {
            "unclaimed": recent_unclaimed,
            "claimed": recent_claimed,
            "conversionRate": (recent_claimed / recent_total) * 100 if recent_total else 0,
        },
    }


def cleanup_expired_guest_sessions(db: Session, now: Optional[datetime] = None) -> dict:
    """Delete expired, never-claimed sessions (guest boards cascade)."""
    now = now or datetime.utcnow()
    expired = (
        db.query(GuestSession)
        .filter(GuestSession.expires_at <= now, GuestSession.claimed_at.is_(None))
        .all()
    )
    for session in expired:
        db.delete(session)
    db.commit()
    logger.info(f"GUEST_SESSIONS_CLEANED | deleted={len(expired)}")
    return {"deleted": len(expired)}
