"""Session helpers (signed tokens, cookies)."""
from __future__ import annotations

import logging
from typing import Optional

import jwt
from fastapi import Response

from storefront.core.config import get_settings, require_app_secret

SESSION_COOKIE_NAME = "token"
_ALGORITHM = "HS256"

logger = logging.getLogger(__name__)


def issue_session_token(user_id: int) -> str:
    """Sign a token whose only claim is the user id; the cookie max-age bounds its lifetime."""
    return jwt.encode({"userId": user_id}, require_app_secret(), algorithm=_ALGORITHM)


def read_session_token(token: Optional[str]) -> Optional[int]:
    """Return the user id carried by a valid token, or None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, require_app_secret(), algorithms=[_ALGORITHM])
    except jwt.PyJWTError:
        logger.debug("Rejected session token with bad signature or format")
        return None
    user_id = payload.get("userId")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        return None
    return user_id


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    secure_cookie = settings.app_env == "prod"
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=secure_cookie,
        samesite="lax",
        max_age=settings.session_cookie_max_age,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
