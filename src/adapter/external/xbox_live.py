"""Xbox Live adapter backed by the OpenXBL (xbl.io) API.

Implements XboxLibraryPort.

API Documentation: https://xbl.io/console
"""

import logging
import os
from datetime import datetime, timezone

import httpx

from adapter.external.http import API_TIMEOUT_SECONDS, dict_items, get_with_retry, json_object
from domain.model.game import XboxGame
from port.identity_provider import ProviderError

logger = logging.getLogger(__name__)

XBL_API_BASE_URL = "https://xbl.io/api/v2"

PROVIDER = "xbox"


class XboxLiveClient:
    def __init__(self, api_key: str, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self._transport = transport

    @classmethod
    def from_env(cls) -> "XboxLiveClient | None":
        """None when XBL_API_KEY is unset."""
        api_key = os.getenv("XBL_API_KEY")
        return cls(api_key) if api_key else None

    async def fetch_games(self, xuid: str) -> list[XboxGame]:
        """Titles with achievement progress for xuid.

        Raises:
            ProviderError: the request failed or the payload is not an object
        """
        headers = {
            "X-Authorization": self.api_key,
            "Accept": "application/json",
            "Accept-Language": "en-US",
        }
        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS, transport=self._transport) as client:
                response = await get_with_retry(client, f"{XBL_API_BASE_URL}/achievements/player/{xuid}", headers=headers)
                response.raise_for_status()
                titles = dict_items(json_object(response, PROVIDER).get("titles"))
        except httpx.HTTPStatusError as e:
            logger.warning("Xbox API HTTP error", extra={"status_code": e.response.status_code, "xuid": xuid})
            raise ProviderError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Xbox API request error", extra={"error_type": type(e).__name__})
            raise ProviderError(PROVIDER, type(e).__name__) from e

        now = datetime.now(timezone.utc)
        games = [_xbox_game(xuid, title, now) for title in titles if title.get("titleId") and title.get("name")]
        logger.info("Fetched Xbox games", extra={"xuid": xuid, "count": len(games)})
        return games


def _xbox_game(xuid: str, title: dict, now: datetime) -> XboxGame:
    progress = title.get("achievement")
    progress = progress if isinstance(progress, dict) else {}
    return XboxGame(
        xuid=xuid,
        title_id=str(title["titleId"]),
        name=title["name"],
        display_image=title.get("displayImage"),
        current_achievements=_count(progress.get("currentAchievements")),
        total_achievements=_count(progress.get("totalAchievements")),
        current_gamerscore=_count(progress.get("currentGamerscore")),
        total_gamerscore=_count(progress.get("totalGamerscore")),
        last_updated=now,
    )


def _count(value) -> int:
    return value if isinstance(value, int) else 0
