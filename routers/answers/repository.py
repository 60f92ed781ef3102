"""Answers repository layer."""

from typing import Optional

from sqlalchemy.orm import Session, joinedload


def get_question(db: Session, *, question_id: str):
    from models import Question

    return db.query(Question).filter(Question.id == question_id).first()


def get_game(db: Session, *, game_id: str):
    from models import Game

    return db.query(Game).filter(Game.id == game_id).first()


def mark_game_question(db: Session, *, game_id: str, question_id: str, correct: bool):
    from models import GameQuestion

    gq = (
        db.query(GameQuestion)
        .filter(GameQuestion.game_id == game_id, GameQuestion.question_id == question_id)
        .first()
    )
    if gq is None:
        gq = GameQuestion(game_id=game_id, question_id=question_id)
        db.add(gq)
    gq.answered = True
    gq.correct = correct
    return gq


def has_correct_history(db: Session, *, user_id: str, question_id: str) -> bool:
    from models import GameHistory

    return (
        db.query(GameHistory.id)
        .filter(
            GameHistory.user_id == user_id,
            GameHistory.question_id == question_id,
            GameHistory.correct.is_(True),
        )
        .first()
        is not None
    )


def find_pending_dispute(db: Session, *, user_id: str, question_id: str, mode, game_id: Optional[str]):
    from models import AnswerDispute, DisputeStatus

    query = db.query(AnswerDispute).filter(
        AnswerDispute.user_id == user_id,
        AnswerDispute.question_id == question_id,
        AnswerDispute.mode == mode,
        AnswerDispute.status == DisputeStatus.PENDING,
    )
    if game_id:
        query = query.filter(AnswerDispute.game_id == game_id)
    else:
        query = query.filter(AnswerDispute.game_id.is_(None))
    return query.first()


def list_user_disputes(db: Session, *, user_id: str):
    from models import AnswerDispute, Question

    return (
        db.query(AnswerDispute)
        .options(joinedload(AnswerDispute.question).joinedload(Question.category))
        .filter(AnswerDispute.user_id == user_id)
        .order_by(AnswerDispute.created_at.desc())
        .all()
    )
