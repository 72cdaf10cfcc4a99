"""Per-platform game data: Steam and Xbox proxies with a 24h cache, PSN sync, GOG.

Steam and Xbox answers are cached per account. A cache that cannot be read
or written only costs a fresh upstream call; an upstream failure surfaces
as UpstreamServiceError.
"""

import logging
from datetime import datetime, timedelta, timezone

from domain.model.errors import (
    AuthenticationError,
    NotFoundError,
    PersistenceError,
    UpstreamServiceError,
    ValidationError,
)
from domain.model.game import GogGame, PsnGame, PsnTokens, PsnTrophySummary, SteamGame, XboxGame
from port.game_repository import GameRepository
from port.identity_provider import ProviderError
from port.platform_api import GogLibraryPort, PsnApiPort, SteamLibraryPort, XboxLibraryPort

logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(hours=24)


def _read_cache(load, account_id: str, now: datetime) -> list:
    try:
        return load(account_id, fresh_since=now - CACHE_TTL)
    except PersistenceError as e:
        logger.warning("Game cache read failed, calling upstream", extra={"accountId": account_id, "error": str(e)})
        return []


def _write_cache(store, games: list, account_id: str) -> None:
    try:
        store(games)
    except PersistenceError as e:
        logger.warning("Game cache write failed", extra={"accountId": account_id, "error": str(e)})


async def get_steam_games(
    repo: GameRepository,
    api: SteamLibraryPort,
    steam_id: str,
    now: datetime | None = None,
) -> list[SteamGame]:
    """Owned Steam games for steam_id, from cache when younger than a day."""
    if not steam_id:
        raise ValidationError("Steam ID is required.")
    now = now or datetime.now(timezone.utc)

    cached = _read_cache(repo.list_steam_games, steam_id, now)
    if cached:
        logger.info("Serving Steam games from cache", extra={"steamId": steam_id, "count": len(cached)})
        return cached

    try:
        games = await api.fetch_owned_games(steam_id)
    except ProviderError as e:
        logger.error("Steam games fetch failed", extra={"steamId": steam_id, "error": e.message})
        raise UpstreamServiceError("Failed to fetch Steam games.") from e

    _write_cache(repo.upsert_steam_games, games, steam_id)
    return sorted(games, key=lambda g: g.name)


async def get_xbox_games(
    repo: GameRepository,
    api: XboxLibraryPort,
    xuid: str,
    now: datetime | None = None,
) -> list[XboxGame]:
    """Xbox titles for xuid, from cache when younger than a day."""
    if not xuid:
        raise ValidationError("XUID is required.")
    now = now or datetime.now(timezone.utc)

    cached = _read_cache(repo.list_xbox_games, xuid, now)
    if cached:
        logger.info("Serving Xbox games from cache", extra={"xuid": xuid, "count": len(cached)})
        return cached

    try:
        games = await api.fetch_games(xuid)
    except ProviderError as e:
        logger.error("Xbox games fetch failed", extra={"xuid": xuid, "error": e.message})
        raise UpstreamServiceError("Failed to fetch Xbox games.") from e

    _write_cache(repo.upsert_xbox_games, games, xuid)
    return sorted(games, key=lambda g: g.name)


async def get_gog_games(api: GogLibraryPort, gog_user_id: str) -> list[GogGame]:
    """Raises NotFoundError when GOG answers without a game list."""
    try:
        games = await api.fetch_games(gog_user_id)
    except ProviderError as e:
        logger.error("GOG games fetch failed", extra={"gogUserId": gog_user_id, "error": e.message})
        raise UpstreamServiceError("Error fetching data from GOG API.") from e
    if games is None:
        raise NotFoundError("No games found for this GOG user or API structure changed.")
    return games


# ── PSN ──────────────────────────────────────────────────────


async def psn_initiate_auth(api: PsnApiPort, npsso: str | None) -> str:
    """Trade an NPSSO token for a one-time access code."""
    if not npsso:
        raise ValidationError("NPSSO token is required.")
    try:
        return await api.exchange_npsso_for_code(npsso)
    except ProviderError as e:
        logger.error("NPSSO exchange failed", extra={"error": e.message})
        raise UpstreamServiceError("Failed to exchange NPSSO for access code.") from e


async def psn_exchange_code(api: PsnApiPort, access_code: str | None) -> PsnTokens:
    if not access_code:
        raise ValidationError("Access code is required.")
    try:
        return await api.exchange_code_for_tokens(access_code)
    except ProviderError as e:
        logger.error("PSN access code exchange failed", extra={"error": e.message})
        raise UpstreamServiceError("Failed to exchange access code for auth tokens.") from e


async def sync_psn_games(
    repo: GameRepository,
    api: PsnApiPort,
    user_id: str,
    access_token: str | None,
    now: datetime | None = None,
) -> list[PsnGame]:
    """Pull the user's trophy titles, store them, and return the stored PSN library.

    Raises:
        AuthenticationError: no PSN access token
        UpstreamServiceError: PSN call failed
        PersistenceError: titles could not be stored
    """
    if not access_token:
        raise AuthenticationError("Access token is required.")
    try:
        titles = await api.fetch_trophy_titles(access_token)
    except ProviderError as e:
        logger.error("PSN titles fetch failed", extra={"userId": user_id, "error": e.message})
        raise UpstreamServiceError("Failed to fetch and sync user PSN game titles.") from e

    repo.upsert_psn_games(user_id, titles, now or datetime.now(timezone.utc))
    logger.info("Synced PSN games", extra={"userId": user_id, "count": len(titles)})
    return sorted(repo.list_psn_games(user_id), key=lambda g: g.trophy_title_name)


async def sync_psn_trophy_summary(
    repo: GameRepository,
    api: PsnApiPort,
    user_id: str,
    access_token: str | None,
    now: datetime | None = None,
) -> PsnTrophySummary:
    if not access_token:
        raise AuthenticationError("Access token is required.")
    try:
        summary = await api.fetch_trophy_summary(access_token)
    except ProviderError as e:
        logger.error("PSN trophy summary fetch failed", extra={"userId": user_id, "error": e.message})
        raise UpstreamServiceError("Failed to fetch and sync user PSN trophy summary.") from e

    summary.user_id = user_id
    summary.last_updated_from_psn = now or datetime.now(timezone.utc)
    repo.save_psn_trophy_summary(summary)
    logger.info("Synced PSN trophy summary", extra={"userId": user_id})
    return summary
