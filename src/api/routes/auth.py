"""Authentication routes.

Endpoints:
- POST /auth/register: create a local account and sign in
- POST /auth/login: sign in with email/password
- GET|POST /auth/logout: end the session
- GET /auth/google, /auth/google/callback: Google OAuth sign-in
- GET /auth/steam, /auth/steam/return: Steam OpenID sign-in
"""

import logging
import os
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse

from api.dependencies import get_google_auth, get_session_store, get_steam_auth, get_user_repo
from api.models import AuthResponse, LoginRequest, MessageResponse, RegisterRequest, UserResponse
from api.security import COOKIE_SECURE, destroy_session, establish_session, get_current_user
from domain.model.errors import DomainError
from domain.model.user import User
from port.identity_provider import GoogleAuthPort, SteamAuthPort
from port.session_store import SessionStore
from port.user_repository import UserRepository
from services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

APP_BASE_URL = os.getenv("APP_BASE_URL", "").rstrip("/")
OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE = 10 * 60


def _frontend_url(path: str) -> str:
    return f"{APP_BASE_URL}{path}"


# ── Local credentials ────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repo),
    sessions: SessionStore = Depends(get_session_store),
):
    """Register a new user and sign them in.

    Raises:
        400 if email/password missing or password too short,
        409 if the email is already registered
    """
    user = auth_service.register(repo, request.email, request.password, request.name)
    establish_session(response, sessions, user.id)
    return AuthResponse(
        message="Registration successful. User logged in.",
        user=UserResponse.from_user(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repo),
    sessions: SessionStore = Depends(get_session_store),
):
    """Sign in with email and password.

    Raises:
        401 with a generic message for any credential mismatch
    """
    user = auth_service.authenticate(repo, request.email, request.password)
    establish_session(response, sessions, user.id)
    return AuthResponse(message="Login successful", user=UserResponse.from_user(user))


# ── Logout ───────────────────────────────────────────────────


def _logout(
    request: Request,
    response: Response,
    current_user: Optional[User],
    repo: UserRepository,
    sessions: SessionStore,
) -> None:
    if current_user is not None:
        auth_service.record_logout(repo, current_user)
    destroy_session(request, response, sessions)
    logger.info("User logged out", extra={"userId": current_user.id if current_user else None})


@router.get("/logout")
async def logout_redirect(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repo),
    sessions: SessionStore = Depends(get_session_store),
):
    """End the session and send the browser back to the app."""
    response = RedirectResponse(APP_BASE_URL or "/", status_code=status.HTTP_302_FOUND)
    _logout(request, response, current_user, repo, sessions)
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    current_user: Optional[User] = Depends(get_current_user),
    repo: UserRepository = Depends(get_user_repo),
    sessions: SessionStore = Depends(get_session_store),
):
    """End the session (API clients)."""
    _logout(request, response, current_user, repo, sessions)
    return MessageResponse(message="Logged out successfully.")


# ── Google ───────────────────────────────────────────────────


@router.get("/google")
async def google_login(client: GoogleAuthPort = Depends(get_google_auth)):
    """Send the browser to Google's consent screen."""
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(client.authorization_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    client: GoogleAuthPort = Depends(get_google_auth),
    repo: UserRepository = Depends(get_user_repo),
    sessions: SessionStore = Depends(get_session_store),
):
    """Finish Google sign-in and redirect to the dashboard."""
    failure = RedirectResponse(_frontend_url("/login?error=google_auth_failed"), status_code=status.HTTP_302_FOUND)
    failure.delete_cookie(OAUTH_STATE_COOKIE)

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if error or not code:
        logger.warning("Google callback without code", extra={"error": error})
        return failure
    if not expected_state or not state or not secrets.compare_digest(state, expected_state):
        logger.warning("Google callback state mismatch")
        return failure

    response = RedirectResponse(
        _frontend_url("/dashboard?google_login_success=true"),
        status_code=status.HTTP_302_FOUND,
    )
    response.delete_cookie(OAUTH_STATE_COOKIE)
    try:
        user = await auth_service.login_with_google(repo, client, code)
        establish_session(response, sessions, user.id)
    except DomainError as e:
        logger.warning("Google sign-in rejected", extra={"error_type": type(e).__name__, "error": e.message})
        return failure
    logger.info("User authenticated via Google", extra={"userId": user.id})
    return response


# ── Steam ────────────────────────────────────────────────────


@router.get("/steam")
async def steam_login(client: SteamAuthPort = Depends(get_steam_auth)):
    """Send the browser to Steam's OpenID sign-in page."""
    return RedirectResponse(client.login_url(), status_code=status.HTTP_302_FOUND)


@router.get("/steam/return")
async def steam_return(
    request: Request,
    client: SteamAuthPort = Depends(get_steam_auth),
    repo: UserRepository = Depends(get_user_repo),
    sessions: SessionStore = Depends(get_session_store),
):
    """Finish Steam sign-in and redirect to the dashboard."""
    try:
        user = await auth_service.login_with_steam(repo, client, dict(request.query_params))
        response = RedirectResponse(
            _frontend_url(f"/dashboard?steam_login_success=true&steamid={user.steam_id}"),
            status_code=status.HTTP_302_FOUND,
        )
        establish_session(response, sessions, user.id)
    except DomainError as e:
        logger.warning("Steam sign-in rejected", extra={"error_type": type(e).__name__, "error": e.message})
        return RedirectResponse(
            _frontend_url("/login?error=steam_auth_callback_failed"),
            status_code=status.HTTP_302_FOUND,
        )
    logger.info("User authenticated via Steam", extra={"userId": user.id, "steamId": user.steam_id})
    return response
