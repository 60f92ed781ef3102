import base64
import json
import logging
from functools import lru_cache

from descope.descope_client import DescopeClient
from fastapi import HTTPException

from config import DESCOPE_JWT_LEEWAY, DESCOPE_JWT_LEEWAY_FALLBACK, DESCOPE_MANAGEMENT_KEY, DESCOPE_PROJECT_ID


@lru_cache(maxsize=4)
def _get_client(leeway: int = DESCOPE_JWT_LEEWAY) -> DescopeClient:
    # Created on first use so imports work without a configured project
    client = DescopeClient(project_id=DESCOPE_PROJECT_ID, jwt_validation_leeway=leeway)
    logging.info(f"Descope client initialized with JWT leeway: {leeway}s")
    return client


def decode_jwt_payload(token: str) -> dict:
    """Decode JWT payload without verification for debugging purposes."""
    try:
        parts = token.split('.')
        if len(parts) != 3:
            return {}
        payload = parts[1]
        padding = len(payload) % 4
        if padding:
            payload += '=' * (4 - padding)
        return json.loads(base64.urlsafe_b64decode(payload).decode('utf-8'))
    except (ValueError, UnicodeDecodeError) as e:
        logging.debug(f"Failed to decode JWT payload: {e}")
        return {}


def _lookup_login_ids(user_id: str) -> dict:
    """Ask the management API for login ids when the session carries none."""
    if not DESCOPE_MANAGEMENT_KEY:
        return {}
    try:
        mgmt_client = DescopeClient(
            project_id=DESCOPE_PROJECT_ID,
            management_key=DESCOPE_MANAGEMENT_KEY,
            jwt_validation_leeway=DESCOPE_JWT_LEEWAY,
        )
        details = mgmt_client.mgmt.user.load(user_id)
    except Exception as e:
        logging.warning(f"Could not fetch user details from management API: {e}")
        return {}
    if not isinstance(details, dict):
        return {}
    return details.get('user', details)


def _user_info_from_session(session) -> dict:
    if not isinstance(session, dict):
        logging.error("Descope session validation failed: session is not a dictionary")
        raise HTTPException(status_code=401, detail="Invalid session format")

    user_id = session.get('userId') or session.get('sub')
    if not user_id:
        logging.error("Descope JWT validation failed: missing userId in session")
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")

    user_info = {
        'userId': user_id,
        'sub': session.get('sub'),
        'loginIds': [],
        'email': None,
        'name': session.get('name'),
        'displayName': session.get('displayName'),
    }

    login_ids = session.get('loginIds')
    if isinstance(login_ids, list) and login_ids:
        user_info['loginIds'] = login_ids
    elif session.get('email'):
        user_info['loginIds'] = [session['email']]
    else:
        user_data = _lookup_login_ids(user_id)
        if isinstance(user_data.get('loginIds'), list) and user_data['loginIds']:
            user_info['loginIds'] = user_data['loginIds']
        elif user_data.get('email'):
            user_info['loginIds'] = [user_data['email']]
        user_info['name'] = user_info['name'] or user_data.get('name')
        user_info['displayName'] = user_info['displayName'] or user_data.get('displayName')

    if not user_info['loginIds']:
        placeholder = f"user_{user_id}@descope.local"
        logging.warning(f"No email found for user {user_id}, using placeholder: {placeholder}")
        user_info['loginIds'] = [placeholder]

    user_info['email'] = user_info['loginIds'][0]
    return user_info


def validate_descope_jwt(token: str) -> dict:
    """
    Validate Descope session JWT and return user info.
    In case of time skew issues, retry with a higher leeway.

    Args:
        token (str): Descope session JWT token

    Returns:
        dict: userId, sub, loginIds, email, name and displayName

    Raises:
        HTTPException: If token validation fails or user info is missing
    """
    logging.debug(f"JWT payload (decoded): {json.dumps(decode_jwt_payload(token), default=str)}")

    try:
        session = _get_client(DESCOPE_JWT_LEEWAY).validate_session(token)
    except Exception as e:
        logging.error(f"Descope JWT validation failed: {e}")
        try:
            logging.info(f"Retrying JWT validation with fallback leeway: {DESCOPE_JWT_LEEWAY_FALLBACK}s")
            session = _get_client(DESCOPE_JWT_LEEWAY_FALLBACK).validate_session(token)
        except Exception as e2:
            logging.error(f"High leeway validation also failed: {e2}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")

    return _user_info_from_session(session)
