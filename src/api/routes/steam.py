"""Steam library routes.

Endpoints:
- GET /api/steam/user/{steam_id}/games: owned games with achievements (cached 24h)
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_game_repo, get_steam_library
from api.models import SteamGameResponse
from api.security import get_current_user_required
from domain.model.user import User
from port.game_repository import GameRepository
from port.platform_api import SteamLibraryPort
from services import platform_games_service

router = APIRouter(prefix="/api/steam", tags=["steam"])


@router.get("/user/{steam_id}/games", response_model=list[SteamGameResponse])
async def get_steam_games(
    steam_id: str,
    current_user: User = Depends(get_current_user_required),
    repo: GameRepository = Depends(get_game_repo),
    api: SteamLibraryPort = Depends(get_steam_library),
):
    games = await platform_games_service.get_steam_games(repo, api, steam_id)
    return [SteamGameResponse.from_game(g) for g in games]
