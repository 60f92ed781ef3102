"""Issue report repository layer."""

from sqlalchemy.orm import Session


def question_exists(db: Session, *, question_id: str) -> bool:
    from models import Question

    return db.query(Question.id).filter(Question.id == question_id).first() is not None


def game_exists(db: Session, *, game_id: str) -> bool:
    from models import Game

    return db.query(Game.id).filter(Game.id == game_id).first() is not None


def create_issue(db: Session, **fields):
    from models import IssueReport

    issue = IssueReport(**fields)
    db.add(issue)
    db.flush()
    return issue
