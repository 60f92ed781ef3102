import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from auth import validate_descope_jwt
from config import CRON_SECRET
from core.db import get_db
from core.users import create_user, get_user_by_descope_id, get_user_by_email, link_descope_id
from models import User, UserRole

logger = logging.getLogger(__name__)


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get('authorization') or request.headers.get('Authorization')
    if not auth_header or not auth_header.lower().startswith('bearer '):
        return None
    return auth_header.split(' ', 1)[1].strip()


def _resolve_user(db: Session, token: str) -> User:
    user_info = validate_descope_jwt(token)
    user = get_user_by_descope_id(db, descope_user_id=user_info['userId'])
    if user:
        return user

    email = user_info['loginIds'][0]
    existing_user = get_user_by_email(db, email=email)
    if existing_user:
        logger.info(f"USER_LINKED | user_id={existing_user.id} | descope_id={user_info['userId']}")
        return link_descope_id(db, user=existing_user, descope_user_id=user_info['userId'])

    user = create_user(
        db,
        descope_user_id=user_info['userId'],
        email=email,
        display_name=user_info.get('displayName') or user_info.get('name'),
    )
    logger.info(f"USER_CREATED | user_id={user.id} | descope_id={user_info['userId']}")
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the Descope JWT from the Authorization header and returns
    the matching User, linking by email or creating the row on first sign-in.
    """
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization token missing.")
    user = _resolve_user(db, token)
    request.state.user_id = user.id
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Like get_current_user, but anonymous callers (no header) get None."""
    token = _bearer_token(request)
    if not token:
        return None
    user = _resolve_user(db, token)
    request.state.user_id = user.id
    return user


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def verify_admin(user: User):
    if not is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required for this endpoint"
        )


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    verify_admin(user)
    return user


def verify_cron_secret(request: Request) -> None:
    """Accept `Authorization: Bearer <CRON_SECRET>` or an `X-Secret` header."""
    supplied = _bearer_token(request) or request.headers.get("x-secret") or ""
    if not CRON_SECRET or not secrets.compare_digest(supplied.encode(), CRON_SECRET.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
