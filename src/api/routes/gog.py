"""GOG library routes.

Endpoints:
- GET /api/gog/user/{gog_user_id}/games: owned GOG titles
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_gog_library
from api.models import GogGameResponse
from api.security import get_current_user_required
from domain.model.user import User
from port.platform_api import GogLibraryPort
from services import platform_games_service

router = APIRouter(prefix="/api/gog", tags=["gog"])


@router.get("/user/{gog_user_id}/games", response_model=list[GogGameResponse])
async def get_gog_games(
    gog_user_id: str,
    current_user: User = Depends(get_current_user_required),
    api: GogLibraryPort = Depends(get_gog_library),
):
    games = await platform_games_service.get_gog_games(api, gog_user_id)
    return [GogGameResponse.from_game(g) for g in games]
