"""Xbox library routes.

Endpoints:
- GET /api/xbox/user/{xuid}/games: titles with achievements and gamerscore (cached 24h)
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_game_repo, get_xbox_library
from api.models import XboxGameResponse
from api.security import get_current_user_required
from domain.model.user import User
from port.game_repository import GameRepository
from port.platform_api import XboxLibraryPort
from services import platform_games_service

router = APIRouter(prefix="/api/xbox", tags=["xbox"])


@router.get("/user/{xuid}/games", response_model=list[XboxGameResponse])
async def get_xbox_games(
    xuid: str,
    current_user: User = Depends(get_current_user_required),
    repo: GameRepository = Depends(get_game_repo),
    api: XboxLibraryPort = Depends(get_xbox_library),
):
    games = await platform_games_service.get_xbox_games(repo, api, xuid)
    return [XboxGameResponse.from_game(g) for g in games]
