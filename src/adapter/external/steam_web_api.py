"""Steam Web API adapter for owned games and achievements.

Implements SteamLibraryPort. Achievement counts need one call per app, so
calls are spaced out by achievement_delay seconds.

API Documentation: https://developer.valvesoftware.com/wiki/Steam_Web_API
"""

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from adapter.external.http import API_TIMEOUT_SECONDS, dict_items, get_with_retry, json_object
from domain.model.game import AchievementCounts, SteamGame
from port.identity_provider import ProviderError

logger = logging.getLogger(__name__)

STEAM_OWNED_GAMES_URL = "https://api.steampowered.com/IPlayerService/GetOwnedGames/v0001/"
STEAM_PLAYER_ACHIEVEMENTS_URL = "https://api.steampowered.com/ISteamUserStats/GetPlayerAchievements/v0001/"
ACHIEVEMENT_DELAY_SECONDS = 0.15

PROVIDER = "steam"


class SteamWebApiClient:
    """Adapter that lists a player's owned games with achievement progress."""

    def __init__(
        self,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
        achievement_delay: float = ACHIEVEMENT_DELAY_SECONDS,
    ):
        self.api_key = api_key
        self._transport = transport
        self.achievement_delay = achievement_delay

    async def fetch_owned_games(self, steam_id: str) -> list[SteamGame]:
        """Raises ProviderError when the owned-games call fails.

        A failed achievement lookup only zeroes that game's counts.
        """
        now = datetime.now(timezone.utc)
        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS, transport=self._transport) as client:
                response = await get_with_retry(
                    client,
                    STEAM_OWNED_GAMES_URL,
                    params={
                        "key": self.api_key,
                        "steamid": steam_id,
                        "format": "json",
                        "include_appinfo": "true",
                        "include_played_free_games": "true",
                    },
                )
                response.raise_for_status()
                body = json_object(response, PROVIDER).get("response")
                entries = [
                    e for e in dict_items(body.get("games") if isinstance(body, dict) else None)
                    if isinstance(e.get("appid"), int)
                ]
                if not entries:
                    logger.info("No Steam games returned", extra={"steamId": steam_id})
                    return []

                games = []
                for index, entry in enumerate(entries):
                    if index and self.achievement_delay:
                        await asyncio.sleep(self.achievement_delay)
                    achievements = await self._achievements(client, steam_id, entry["appid"])
                    games.append(_steam_game(steam_id, entry, achievements, now))
        except httpx.HTTPStatusError as e:
            logger.warning("Steam Web API HTTP error", extra={"status_code": e.response.status_code})
            raise ProviderError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Steam Web API request error", extra={"error_type": type(e).__name__})
            raise ProviderError(PROVIDER, type(e).__name__) from e

        logger.info("Fetched Steam games", extra={"steamId": steam_id, "count": len(games)})
        return games

    async def _achievements(self, client: httpx.AsyncClient, steam_id: str, app_id: int) -> AchievementCounts:
        try:
            response = await get_with_retry(
                client,
                STEAM_PLAYER_ACHIEVEMENTS_URL,
                params={"key": self.api_key, "steamid": steam_id, "appid": app_id},
            )
            response.raise_for_status()
            stats = json_object(response, PROVIDER).get("playerstats")
        except (httpx.HTTPError, ProviderError) as e:
            logger.debug("No achievements for app", extra={"appId": app_id, "error_type": type(e).__name__})
            return AchievementCounts()

        achievements = dict_items(stats.get("achievements") if isinstance(stats, dict) else None)
        unlocked = sum(1 for a in achievements if a.get("achieved") == 1)
        return AchievementCounts(unlocked=unlocked, total=len(achievements))


def _steam_game(steam_id: str, entry: dict, achievements: AchievementCounts, now: datetime) -> SteamGame:
    last_played = entry.get("rtime_last_played")
    return SteamGame(
        steam_id=steam_id,
        app_id=entry["appid"],
        name=entry.get("name") or f"App {entry['appid']}",
        playtime_forever=int(entry.get("playtime_forever") or 0),
        img_icon_url=entry.get("img_icon_url") or None,
        img_logo_url=entry.get("img_logo_url") or None,
        rtime_last_played=datetime.fromtimestamp(last_played, timezone.utc) if isinstance(last_played, int) and last_played else None,
        achievements=achievements,
        last_updated=now,
    )
