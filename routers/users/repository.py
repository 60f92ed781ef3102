"""Users repository layer."""

from typing import Optional

from sqlalchemy.orm import Session


def get_user_by_id(db: Session, *, user_id: str):
    from models import User

    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, *, email: str):
    from models import User

    return db.query(User).filter(User.email == email).first()


def get_user_by_descope_id(db: Session, *, descope_user_id: str):
    from models import User

    return db.query(User).filter(User.descope_user_id == descope_user_id).first()


def create_user(db: Session, *, descope_user_id: str, email: str, display_name: Optional[str] = None):
    from models import User

    user = User(descope_user_id=descope_user_id, email=email, display_name=display_name)
    db.add(user)
    db.flush()
    return user


def delete_answer_history(db: Session, *, user_id: str) -> int:
    from models import GameHistory, UserProgress

    deleted = db.query(GameHistory).filter(GameHistory.user_id == user_id).delete(synchronize_session=False)
    db.query(UserProgress).filter(UserProgress.user_id == user_id).delete(synchronize_session=False)
    return deleted
