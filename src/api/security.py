"""Session cookies and current-user resolution.

The session itself lives server-side (SessionStore). The browser only holds
a signed JWT naming the session, so a tampered or foreign cookie is rejected
before the store is consulted, and logout takes effect immediately because
the session row is deleted.
"""

import os
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, Request, Response, status
from jose import JWTError, jwt

from api.dependencies import get_session_store, get_user_repo
from domain.model.user import User
from port.session_store import SessionStore
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")
if not SESSION_SECRET_KEY:
    logger.warning(
        "SESSION_SECRET_KEY is not set; using a random per-process key. "
        "Sessions will not survive a restart. Generate one with: openssl rand -hex 32"
    )
    SESSION_SECRET_KEY = secrets.token_hex(32)
SESSION_ALGORITHM = "HS256"
SESSION_EXPIRATION_DAYS = int(os.getenv("SESSION_EXPIRATION_DAYS", "7"))
SESSION_COOKIE_NAME = "sid"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

NOT_AUTHENTICATED = "User not authenticated. Please log in."


def create_session_token(session_id: str, user_id: str) -> str:
    """Sign a cookie value that names a server-side session."""
    now = datetime.now(timezone.utc)
    payload = {
        "sid": session_id,
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(days=SESSION_EXPIRATION_DAYS),
    }
    return jwt.encode(payload, SESSION_SECRET_KEY, algorithm=SESSION_ALGORITHM)


def read_session_token(token: str) -> Optional[str]:
    """Verify a session cookie and return the session id it names."""
    try:
        payload = jwt.decode(token, SESSION_SECRET_KEY, algorithms=[SESSION_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None
    return payload.get("sid")


def establish_session(response: Response, sessions: SessionStore, user_id: str) -> str:
    """Open a session for user_id and attach its cookie to response."""
    session_id = sessions.create(user_id)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        create_session_token(session_id, user_id),
        max_age=SESSION_EXPIRATION_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )
    logger.debug("Session established", extra={"userId": user_id})
    return session_id


def destroy_session(request: Request, response: Response, sessions: SessionStore) -> None:
    """Drop the server-side session (if any) and clear the cookie."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    session_id = read_session_token(token) if token else None
    if session_id:
        sessions.delete(session_id)
    response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, samesite="lax", secure=COOKIE_SECURE)


def get_current_user(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
    user_repo: UserRepository = Depends(get_user_repo),
) -> Optional[User]:
    """Resolve the session cookie to a user (optional). Returns None if anonymous."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None

    session_id = read_session_token(token)
    if not session_id:
        return None

    user_id = sessions.get_user_id(session_id)
    if not user_id:
        return None

    return user_repo.get_by_id(user_id)


def get_current_user_required(
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    """Resolve the session cookie to a user (required). Raises 401 if anonymous."""
    if current_user is None:
        logger.warning("Unauthorized access attempt to a protected route")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)
    return current_user
