"""Answer history, per-category progress and play streaks."""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from models import GameHistory, Question, User, UserProgress


def upsert_user_progress(
    db: Session,
    *,
    user_id: str,
    question: Question,
    correct_increment: int,
    total_increment: int,
    points: int,
) -> UserProgress:
    progress = (
        db.query(UserProgress)
        .filter(UserProgress.user_id == user_id, UserProgress.category_id == question.category_id)
        .first()
    )
    if progress is None:
        progress = UserProgress(
            user_id=user_id,
            category_id=question.category_id,
            question_id=question.id,
            correct=correct_increment,
            total=total_increment,
            points=points,
        )
        db.add(progress)
    else:
        progress.correct += correct_increment
        progress.total += total_increment
        progress.points += points
    db.flush()
    return progress


def update_game_history(
    db: Session,
    *,
    user_id: str,
    question_id: str,
    correct: bool,
    points: int,
    user_answer: Optional[str] = None,
):
    """Record one answer and bump the category counters (no commit)."""
    question = db.query(Question).filter(Question.id == question_id).first()
    if question is None:
        raise ValueError("Question not found")

    history = GameHistory(
        user_id=user_id,
        question_id=question_id,
        correct=correct,
        points=points,
        user_answer=user_answer,
    )
    db.add(history)
    progress = upsert_user_progress(
        db,
        user_id=user_id,
        question=question,
        correct_increment=1 if correct else 0,
        total_increment=1,
        points=points,
    )
    return history, progress


def update_streak(user: User, today: date) -> User:
    """Same day: unchanged. Next day: +1. Longer gap or first game: reset to 1."""
    last = user.last_game_date
    if last is None:
        streak = 1
    else:
        gap = (today - last).days
        if gap <= 0:
            streak = user.current_streak or 1
        elif gap == 1:
            streak = (user.current_streak or 0) + 1
        else:
            streak = 1

    user.current_streak = streak
    user.longest_streak = max(user.longest_streak or 0, streak)
    user.last_game_date = today
    return user


def is_weekday(value: date) -> bool:
    return value.weekday() < 5
