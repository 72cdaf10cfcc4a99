"""User API routes.

Endpoints:
- GET /api/user/me: profile of the signed-in user
- POST /api/user/change-password: change or first-set a local password
- PUT /api/user/connections/{platform}: link a platform account
- DELETE /api/user/connections/{platform}: unlink a platform account
- GET /api/user/{user_id}/games: aggregated game list
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_game_repo, get_user_repo
from api.models import (
    ChangePasswordRequest,
    ConnectPlatformRequest,
    LibraryGameResponse,
    MessageResponse,
    UserResponse,
)
from api.security import get_current_user_required
from domain.model.user import User
from port.game_repository import GameRepository
from port.user_repository import UserRepository
from services import auth_service, connection_service, library_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user_required)):
    """Get the authenticated user's public profile."""
    logger.debug("Authenticated user profile requested", extra={"userId": current_user.id})
    return UserResponse.from_user(current_user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Change the user's password, or set one on a provider-only account."""
    auth_service.change_password(
        repo,
        current_user.id,
        new_password=request.new_password,
        current_password=request.current_password,
    )
    return MessageResponse(message="Password changed successfully.")


@router.put("/connections/{platform}", response_model=UserResponse)
async def connect_platform(
    platform: str,
    request: ConnectPlatformRequest,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Link a platform account (xbox, psn, steam)."""
    user = connection_service.connect_platform(
        repo, current_user.id, platform, request.model_dump(exclude_none=True)
    )
    return UserResponse.from_user(user)


@router.delete("/connections/{platform}", response_model=UserResponse)
async def disconnect_platform(
    platform: str,
    current_user: User = Depends(get_current_user_required),
    repo: UserRepository = Depends(get_user_repo),
):
    """Unlink a platform account. The user account itself is kept."""
    user = connection_service.disconnect_platform(repo, current_user.id, platform)
    return UserResponse.from_user(user)


@router.get("/{user_id}/games", response_model=list[LibraryGameResponse])
async def get_user_games(
    user_id: str,
    current_user: User = Depends(get_current_user_required),
    repo: GameRepository = Depends(get_game_repo),
):
    """Get every stored game for the user, sorted by platform then title."""
    games = library_service.get_user_games(
        repo, current_user.id, user_id, steam_id=current_user.steam_id, xuid=current_user.xuid,
    )
    return [LibraryGameResponse.from_game(g) for g in games]
