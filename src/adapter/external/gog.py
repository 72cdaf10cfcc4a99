"""GOG adapter for the embed.gog.com game list.

Implements GogLibraryPort. The endpoint answers for the account whose
browser cookies accompany the request; gog_user_id is only used for logs.
"""

import logging

import httpx

from adapter.external.http import API_TIMEOUT_SECONDS, dict_items, get_with_retry, json_object
from domain.model.game import GogGame
from port.identity_provider import ProviderError

logger = logging.getLogger(__name__)

GOG_GAMES_URL = "https://embed.gog.com/user/data/games"

PROVIDER = "gog"


class GogClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    async def fetch_games(self, gog_user_id: str) -> list[GogGame] | None:
        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS, transport=self._transport) as client:
                response = await get_with_retry(client, GOG_GAMES_URL)
                response.raise_for_status()
                body = json_object(response, PROVIDER)
        except httpx.HTTPStatusError as e:
            logger.warning("GOG API HTTP error", extra={"status_code": e.response.status_code, "gogUserId": gog_user_id})
            raise ProviderError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("GOG API request error", extra={"error_type": type(e).__name__})
            raise ProviderError(PROVIDER, type(e).__name__) from e

        if "games" not in body:
            logger.warning("No games key in GOG response", extra={"gogUserId": gog_user_id})
            return None

        games = [
            GogGame(
                app_id=entry["id"],
                name=entry.get("title") or str(entry["id"]),
                img_icon_url=f"https:{entry['image']}_196.jpg" if entry.get("image") else None,
            )
            for entry in dict_items(body["games"])
            if entry.get("id") is not None
        ]
        logger.info("Fetched GOG games", extra={"gogUserId": gog_user_id, "count": len(games)})
        return games
