"""PlayStation Network routes.

Endpoints:
- POST /api/psn/initiate-auth: NPSSO token -> access code
- POST /api/psn/exchange-code: access code -> PSN tokens
- GET /api/psn/games: sync trophy titles (PSN token as Bearer)
- GET /api/psn/trophy-summary: sync trophy level (PSN token as Bearer)

The site session rides in a cookie, so the Authorization header is free to
carry the PSN access token.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Header

from api.dependencies import get_game_repo, get_psn_api
from api.models import (
    LibraryGameResponse,
    PsnAccessCodeResponse,
    PsnAuthorizationResponse,
    PsnExchangeCodeRequest,
    PsnGamesSyncResponse,
    PsnInitiateAuthRequest,
    PsnTokensResponse,
    PsnTrophySummaryResponse,
    PsnTrophySummarySyncResponse,
    TrophyCountsResponse,
)
from api.security import get_current_user_required
from domain.model.user import User
from port.game_repository import GameRepository
from port.platform_api import PsnApiPort
from services import platform_games_service
from services.library_service import psn_to_library_game

router = APIRouter(prefix="/api/psn", tags=["psn"])


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Token from an 'Authorization: Bearer <token>' header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@router.post("/initiate-auth", response_model=PsnAccessCodeResponse)
async def initiate_auth(
    request: PsnInitiateAuthRequest,
    current_user: User = Depends(get_current_user_required),
    api: PsnApiPort = Depends(get_psn_api),
):
    access_code = await platform_games_service.psn_initiate_auth(api, request.npsso)
    return PsnAccessCodeResponse(
        message="NPSSO exchanged for access code. Ready to get auth tokens.",
        access_code=access_code,
    )


@router.post("/exchange-code", response_model=PsnAuthorizationResponse)
async def exchange_code(
    request: PsnExchangeCodeRequest,
    current_user: User = Depends(get_current_user_required),
    api: PsnApiPort = Depends(get_psn_api),
):
    tokens = await platform_games_service.psn_exchange_code(api, request.access_code)
    return PsnAuthorizationResponse(
        message="Successfully obtained PSN auth tokens.",
        authorization=PsnTokensResponse(**asdict(tokens)),
    )


@router.get("/games", response_model=PsnGamesSyncResponse)
async def sync_games(
    access_token: Optional[str] = Depends(bearer_token),
    current_user: User = Depends(get_current_user_required),
    repo: GameRepository = Depends(get_game_repo),
    api: PsnApiPort = Depends(get_psn_api),
):
    games = await platform_games_service.sync_psn_games(repo, api, current_user.id, access_token)
    return PsnGamesSyncResponse(
        message="PSN games fetched and synced successfully.",
        games=[LibraryGameResponse.from_game(psn_to_library_game(g)) for g in games],
    )


@router.get("/trophy-summary", response_model=PsnTrophySummarySyncResponse)
async def sync_trophy_summary(
    access_token: Optional[str] = Depends(bearer_token),
    current_user: User = Depends(get_current_user_required),
    repo: GameRepository = Depends(get_game_repo),
    api: PsnApiPort = Depends(get_psn_api),
):
    summary = await platform_games_service.sync_psn_trophy_summary(repo, api, current_user.id, access_token)
    return PsnTrophySummarySyncResponse(
        message="PSN trophy profile fetched and synced successfully.",
        summary=PsnTrophySummaryResponse(
            psn_account_id=summary.psn_account_id,
            trophy_level=summary.trophy_level,
            progress=summary.progress,
            tier=summary.tier,
            earned_trophies=TrophyCountsResponse(**asdict(summary.earned_trophies)),
            last_updated_from_psn=summary.last_updated_from_psn,
        ),
    )
