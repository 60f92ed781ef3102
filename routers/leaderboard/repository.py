"""Leaderboard repository layer."""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, case, distinct, func
from sqlalchemy.orm import Session, joinedload

from utils.scoring import DEFAULT_STATS_CLUE_VALUE, FINAL_STATS_CLUE_VALUE


def _stats_points_expr():
    from models import GameHistory, JeopardyRound, Question

    return case(
        (and_(GameHistory.correct.is_(True), Question.round == JeopardyRound.FINAL), FINAL_STATS_CLUE_VALUE),
        (GameHistory.correct.is_(True), func.coalesce(Question.value, DEFAULT_STATS_CLUE_VALUE)),
        else_=0,
    )


def leaderboard_rows(db: Session, *, limit: int):
    from models import GameHistory, Question, User

    total_points = func.coalesce(func.sum(_stats_points_expr()), 0)
    return (
        db.query(
            User.id,
            User.display_name,
            User.selected_icon,
            func.count(distinct(case((GameHistory.correct.is_(True), GameHistory.question_id)))).label("correct"),
            func.count(distinct(GameHistory.question_id)).label("answered"),
            total_points.label("points"),
        )
        .join(GameHistory, GameHistory.user_id == User.id)
        .join(Question, Question.id == GameHistory.question_id)
        .group_by(User.id, User.display_name, User.selected_icon)
        .having(total_points > 0)
        .order_by(total_points.desc())
        .limit(limit)
        .all()
    )


def high_score_games(db: Session, *, since: Optional[datetime], limit: int) -> List:
    from models import Game, GameStatus

    query = (
        db.query(Game)
        .options(joinedload(Game.user), joinedload(Game.questions))
        .filter(Game.status == GameStatus.COMPLETED, Game.current_score > 0)
    )
    if since is not None:
        query = query.filter(Game.updated_at >= since)
    return query.order_by(Game.current_score.desc()).limit(limit).all()


def latest_answers(db: Session, *, user_id: str) -> List:
    """Most recent GameHistory row per question for one user, with its question and category."""
    from models import GameHistory, Question

    rows = (
        db.query(GameHistory)
        .options(joinedload(GameHistory.question).joinedload(Question.category))
        .filter(GameHistory.user_id == user_id)
        .order_by(GameHistory.timestamp.desc())
        .all()
    )
    latest = {}
    for row in rows:
        latest.setdefault(row.question_id, row)
    return list(latest.values())


def last_incorrect_answers(db: Session, *, user_id: str) -> Dict[str, str]:
    from models import GameHistory

    rows = (
        db.query(GameHistory.question_id, GameHistory.user_answer)
        .filter(
            GameHistory.user_id == user_id,
            GameHistory.correct.is_(False),
            GameHistory.user_answer.isnot(None),
        )
        .order_by(GameHistory.timestamp.desc())
        .all()
    )
    answers: Dict[str, str] = {}
    for question_id, user_answer in rows:
        answers.setdefault(question_id, user_answer)
    return answers


def knowledge_category_totals(db: Session):
    from models import Question

    return (
        db.query(Question.knowledge_category, func.count(Question.id))
        .group_by(Question.knowledge_category)
        .order_by(Question.knowledge_category)
        .all()
    )


def category_totals(db: Session):
    from models import Category, Question

    return (
        db.query(Category.id, Category.name, func.count(Question.id), func.max(Question.air_date))
        .outerjoin(Question, Question.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(Category.name)
        .all()
    )


def get_category_by_name(db: Session, *, name: str):
    from models import Category

    return db.query(Category).filter(Category.name == name).first()


def list_category_questions(db: Session, *, category_id: str) -> List:
    from models import Question

    return (
        db.query(Question)
        .filter(Question.category_id == category_id)
        .order_by(Question.value.asc())
        .all()
    )


def correctly_answered_ids(db: Session, *, user_id: str, question_ids: List[str]) -> set:
    from models import GameHistory

    if not question_ids:
        return set()
    rows = (
        db.query(distinct(GameHistory.question_id))
        .filter(
            GameHistory.user_id == user_id,
            GameHistory.correct.is_(True),
            GameHistory.question_id.in_(question_ids),
        )
        .all()
    )
    return {question_id for (question_id,) in rows}


def count_category_questions(db: Session, *, category_id: str) -> int:
    from models import Question

    return db.query(func.count(Question.id)).filter(Question.category_id == category_id).scalar() or 0
