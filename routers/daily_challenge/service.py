"""Daily challenge service layer."""

import logging
from datetime import datetime, timedelta

from fastapi import HTTPException, status

from core.errors import ApiError
from models import GuestSessionType
from utils.achievements import (
    DAILY_CHALLENGE_COMPLETED, AchievementEvent, check_and_unlock_achievements, describe_unlocked,
)
from utils.answer_overrides import get_question_overrides, is_answer_accepted_with_overrides
from utils.daily_challenge_dates import get_active_challenge_date, get_next_challenge_time, parse_challenge_date
from utils.daily_challenge_setup import get_or_create_challenge
from utils.guest_sessions import create_guest_session, get_guest_config

from . import repository as challenge_repository

logger = logging.getLogger(__name__)

ARCHIVE_DAYS = 7
GUEST_SIGN_IN_MESSAGE = "Sign in to save your answer and appear on the leaderboard"


def serialize_challenge_question(challenge) -> dict:
    question = challenge.question
    return {
        "id": question.id,
        "question": question.question,
        "answer": question.answer,
        "category": question.category.name,
        "airDate": question.air_date,
    }


def _serialize_completion(completion):
    if completion is None:
        return None
    return {
        "correct": completion.correct,
        "completedAt": completion.completed_at,
        "userAnswerText": completion.user_answer,
    }


def _active_challenge(db):
    challenge_date = get_active_challenge_date()
    challenge = challenge_repository.get_challenge_by_date(db, challenge_date=challenge_date)
    if challenge is not None:
        return challenge
    try:
        created = get_or_create_challenge(db, challenge_date)
    except Exception:
        logger.exception(f"DAILY_CHALLENGE_SETUP_FAILED | date={challenge_date}")
        db.rollback()
        created = None
    if created is None:
        return None
    return challenge_repository.get_challenge(db, challenge_id=created.id)


def get_daily_challenge(db, user):
    challenge = _active_challenge(db)
    if challenge is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to setup daily challenge")

    completion = None
    if user is not None:
        completion = challenge_repository.get_user_completion(db, user_id=user.id, challenge_id=challenge.id)

    config = get_guest_config(db)
    return {
        "id": challenge.id,
        "date": challenge.date,
        "question": serialize_challenge_question(challenge),
        "userAnswer": _serialize_completion(completion),
        "guestConfig": {
            "guestEnabled": config.daily_challenge_guest_enabled,
            "guestAppearsOnLeaderboard": config.daily_challenge_guest_appears_on_leaderboard,
        },
        "nextChallengeTime": get_next_challenge_time().isoformat(),
    }


def _require_guest_allowed(db, user):
    if user is None and not get_guest_config(db).daily_challenge_guest_enabled:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Authentication required for daily challenge", requiresAuth=True)


def _grade(db, challenge, answer: str) -> bool:
    overrides = get_question_overrides(db, challenge.question_id)
    return is_answer_accepted_with_overrides(answer.strip(), challenge.question.answer, overrides)


def _guest_result(db, challenge, answer: str, correct: bool) -> dict:
    session = create_guest_session(db, GuestSessionType.DAILY_CHALLENGE, {
        "challengeId": challenge.id,
        "questionId": challenge.question_id,
        "correct": correct,
        "userAnswer": answer,
        "timestamp": datetime.utcnow().isoformat(),
    })
    db.commit()
    db.refresh(session)
    logger.info(f"DAILY_CHALLENGE_GUEST_ANSWER | challenge_id={challenge.id} | session={session.id}")
    return {
        "correct": correct,
        "answer": challenge.question.answer,
        "guestSessionId": session.id,
        "expiresAt": session.expires_at.isoformat(),
        "requiresAuth": True,
        "message": GUEST_SIGN_IN_MESSAGE,
    }


def _record_answer(db, user, challenge, answer: str):
    existing = challenge_repository.get_user_completion(db, user_id=user.id, challenge_id=challenge.id)
    if existing is not None:
        return {"correct": existing.correct, "alreadyAnswered": True}

    correct = _grade(db, challenge, answer)
    challenge_repository.create_completion(
        db, user_id=user.id, challenge_id=challenge.id, correct=correct, user_answer=answer.strip()
    )
    db.commit()
    logger.info(f"DAILY_CHALLENGE_ANSWER | challenge_id={challenge.id} | user_id={user.id} | correct={correct}")
    unlocked = check_and_unlock_achievements(db, user, AchievementEvent(DAILY_CHALLENGE_COMPLETED))
    return {
        "correct": correct,
        "answer": challenge.question.answer,
        "newlyUnlockedAchievements": describe_unlocked(unlocked),
    }


def submit_answer(db, user, *, answer: str):
    _require_guest_allowed(db, user)
    challenge = _active_challenge(db)
    if challenge is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Daily challenge not available")

    if user is None:
        return _guest_result(db, challenge, answer, _grade(db, challenge, answer))
    return _record_answer(db, user, challenge, answer)


def get_leaderboard(db, *, date_param=None):
    if date_param:
        try:
            target = parse_challenge_date(date_param)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format")
    else:
        target = get_active_challenge_date()

    challenge = challenge_repository.get_challenge_by_date(db, challenge_date=target)
    if challenge is None:
        return {"leaderboard": [], "totalCorrect": 0, "totalAttempted": 0, "date": target.isoformat()}

    completions = challenge_repository.list_completions(db, challenge_id=challenge.id)
    leaderboard = [
        {
            "rank": index,
            "userId": completion.user.id,
            "displayName": completion.user.display_name or "Anonymous",
            "selectedIcon": completion.user.selected_icon,
            "correct": completion.correct,
            "completedAt": completion.completed_at,
        }
        for index, completion in enumerate(completions, start=1)
    ]
    return {
        "leaderboard": leaderboard,
        "totalCorrect": sum(1 for c in completions if c.correct),
        "totalAttempted": len(completions),
        "date": target.isoformat(),
    }


def _archive_window():
    active = get_active_challenge_date()
    return active - timedelta(days=ARCHIVE_DAYS - 1), active


def get_archive(db, user):
    start, active = _archive_window()
    challenges = challenge_repository.list_challenges_between(db, start=start, end=active)
    completions = {}
    if user is not None:
        completions = challenge_repository.get_user_completions_for(
            db, user_id=user.id, challenge_ids=[c.id for c in challenges]
        )
    return {
        "challenges": [
            {
                "id": challenge.id,
                "date": challenge.date,
                "question": serialize_challenge_question(challenge),
                "participation": _serialize_completion(completions.get(challenge.id)),
            }
            for challenge in challenges
        ],
        "activeDate": active,
    }


def submit_archive_answer(db, user, *, challenge_id: str, answer: str):
    _require_guest_allowed(db, user)
    challenge = challenge_repository.get_challenge(db, challenge_id=challenge_id)
    if challenge is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Challenge not found")

    start, active = _archive_window()
    if not (start <= challenge.date <= active):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Challenge is outside the 7-day archive window")

    if user is None:
        return _guest_result(db, challenge, answer, _grade(db, challenge, answer))
    return _record_answer(db, user, challenge, answer)


def compute_streaks(entries):
    """Participation and correctness streaks over (date, correct) pairs sorted oldest first."""
    participation = {"current": 0, "longest": 0}
    correctness = {"current": 0, "longest": 0}
    last_day = None
    last_correct_day = None

    for day, correct in entries:
        if last_day is not None and (day - last_day).days == 1:
            participation["current"] += 1
        else:
            participation["current"] = 1
        participation["longest"] = max(participation["longest"], participation["current"])
        last_day = day

        if correct:
            if last_correct_day is not None and (day - last_correct_day).days == 1:
                correctness["current"] += 1
            else:
                correctness["current"] = 1
            correctness["longest"] = max(correctness["longest"], correctness["current"])
            last_correct_day = day
        else:
            correctness["current"] = 0

    return participation, correctness


def get_stats(db, user):
    completions = challenge_repository.list_user_history(db, user_id=user.id)
    total = len(completions)
    correct = sum(1 for c in completions if c.correct)

    ordered = sorted(completions, key=lambda c: c.challenge.date)
    participation, correctness = compute_streaks((c.challenge.date, c.correct) for c in ordered)

    history = []
    for completion in completions:
        question = completion.challenge.question
        history.append({
            "challengeDate": completion.challenge.date.isoformat(),
            "completedAt": completion.completed_at,
            "correct": completion.correct,
            "questionId": question.id,
            "categoryName": question.category.name,
            "question": question.question,
            "answer": question.answer,
            "airDate": question.air_date,
            "userAnswer": completion.user_answer,
        })

    return {
        "totalCompleted": total,
        "totalCorrect": correct,
        "totalIncorrect": total - correct,
        "accuracy": round(correct / total * 100) if total else 0,
        "participationStreak": participation,
        "correctnessStreak": correctness,
        "history": history,
    }
