"""
User session helpers.

Thin wrappers around Flask's signed-cookie session for storing the logged-in
user. Must be called inside a request context.
"""

from typing import Dict, Any
import logging
from flask import abort, session

logger = logging.getLogger(__name__)


def get_user_session() -> Dict[str, Any]:
    return dict(session)


def set_user_session(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge data into the user session.

    Top-level keys are replaced, except ``user`` whose entries are merged so
    that logging in with a second provider keeps the first one.

    Args:
        data: Session data to store

    Returns:
        The updated session data
    """
    for key, value in data.items():
        if key == 'user' and isinstance(value, dict) and isinstance(session.get('user'), dict):
            session['user'] = {**session['user'], **value}
        else:
            session[key] = value

    logger.debug(f"Updated user session keys: {', '.join(sorted(data))}")
    return get_user_session()


def replace_user_session(data: Dict[str, Any]) -> Dict[str, Any]:
    session.clear()
    return set_user_session(data)


def clear_user_session() -> bool:
    had_user = 'user' in session
    session.clear()
    return had_user


def require_user_session() -> Dict[str, Any]:
    """
    Get the user session, aborting with 401 when nobody is logged in.

    Returns:
        The session data
    """
    if not session.get('user'):
        abort(401)
    return get_user_session()
