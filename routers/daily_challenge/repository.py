"""Daily challenge repository layer."""

from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session, joinedload


def _with_question(query):
    from models import DailyChallenge, Question

    return query.options(joinedload(DailyChallenge.question).joinedload(Question.category))


def get_challenge_by_date(db: Session, *, challenge_date: date):
    from models import DailyChallenge

    return _with_question(db.query(DailyChallenge)).filter(DailyChallenge.date == challenge_date).first()


def get_challenge(db: Session, *, challenge_id: str):
    from models import DailyChallenge

    return _with_question(db.query(DailyChallenge)).filter(DailyChallenge.id == challenge_id).first()


def list_challenges_between(db: Session, *, start: date, end: date) -> List:
    from models import DailyChallenge

    return (
        _with_question(db.query(DailyChallenge))
        .filter(DailyChallenge.date >= start, DailyChallenge.date <= end)
        .order_by(DailyChallenge.date.desc())
        .all()
    )


def get_user_completion(db: Session, *, user_id: str, challenge_id: str):
    from models import UserDailyChallenge

    return (
        db.query(UserDailyChallenge)
        .filter(UserDailyChallenge.user_id == user_id, UserDailyChallenge.challenge_id == challenge_id)
        .first()
    )


def get_user_completions_for(db: Session, *, user_id: str, challenge_ids: List[str]) -> Dict[str, object]:
    from models import UserDailyChallenge

    if not challenge_ids:
        return {}
    rows = (
        db.query(UserDailyChallenge)
        .filter(UserDailyChallenge.user_id == user_id, UserDailyChallenge.challenge_id.in_(challenge_ids))
        .all()
    )
    return {row.challenge_id: row for row in rows}


def create_completion(db: Session, *, user_id: str, challenge_id: str, correct: bool, user_answer: str):
    from models import UserDailyChallenge

    completion = UserDailyChallenge(
        user_id=user_id, challenge_id=challenge_id, correct=correct, user_answer=user_answer
    )
    db.add(completion)
    db.flush()
    return completion


def list_completions(db: Session, *, challenge_id: str) -> List:
    from models import UserDailyChallenge

    return (
        db.query(UserDailyChallenge)
        .options(joinedload(UserDailyChallenge.user))
        .filter(UserDailyChallenge.challenge_id == challenge_id)
        .order_by(UserDailyChallenge.correct.desc(), UserDailyChallenge.completed_at.asc())
        .all()
    )


def list_user_history(db: Session, *, user_id: str) -> List:
    from models import DailyChallenge, Question, UserDailyChallenge

    return (
        db.query(UserDailyChallenge)
        .join(DailyChallenge, DailyChallenge.id == UserDailyChallenge.challenge_id)
        .options(
            joinedload(UserDailyChallenge.challenge)
            .joinedload(DailyChallenge.question)
            .joinedload(Question.category)
        )
        .filter(UserDailyChallenge.user_id == user_id)
        .order_by(DailyChallenge.date.desc())
        .all()
    )
