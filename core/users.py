"""User lookup facade.

Domains should not query the `User` model directly. Instead, call these helpers which
delegate to the users domain repository.
"""

from typing import Optional

from sqlalchemy.orm import Session


def get_user_by_id(db: Session, *, user_id: str):
    from routers.users import repository as users_repository

    return users_repository.get_user_by_id(db, user_id=user_id)


def get_user_by_email(db: Session, *, email: str):
    from routers.users import repository as users_repository

    return users_repository.get_user_by_email(db, email=email)


def get_user_by_descope_id(db: Session, *, descope_user_id: str):
    from routers.users import repository as users_repository

    return users_repository.get_user_by_descope_id(db, descope_user_id=descope_user_id)


def create_user(db: Session, *, descope_user_id: str, email: str, display_name: Optional[str] = None):
    from routers.users import repository as users_repository

    user = users_repository.create_user(
        db, descope_user_id=descope_user_id, email=email, display_name=display_name
    )
    db.commit()
    db.refresh(user)
    return user


def link_descope_id(db: Session, *, user, descope_user_id: str):
    user.descope_user_id = descope_user_id
    db.commit()
    db.refresh(user)
    return user