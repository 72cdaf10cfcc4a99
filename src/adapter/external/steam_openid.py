"""Steam OpenID 2.0 adapter.

Implements SteamAuthPort. Steam signs users in with a plain OpenID 2.0
identifier_select flow; the verified claimed_id carries the 64-bit SteamID.
Persona name, avatar and profile URL come from the Steam Web API.

API Documentation: https://partner.steamgames.com/doc/features/auth#website
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping
from urllib.parse import urlencode, urlsplit

import httpx

from adapter.external.http import API_TIMEOUT_SECONDS, dict_items, get_with_retry, json_object, post_with_retry
from domain.model.identity import SteamProfile
from port.identity_provider import ProviderError

logger = logging.getLogger(__name__)

STEAM_OPENID_URL = "https://steamcommunity.com/openid/login"
STEAM_PLAYER_SUMMARIES_URL = "https://api.steampowered.com/ISteamUser/GetPlayerSummaries/v2/"
OPENID_NS = "http://specs.openid.net/auth/2.0"
OPENID_IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
CLAIMED_ID_PATTERN = re.compile(r"^https?://steamcommunity\.com/openid/id/(\d{17})/?$")

PROVIDER = "steam"


@dataclass(frozen=True)
class SteamOpenIDConfig:
    realm: str
    return_to: str
    api_key: str

    @classmethod
    def from_env(cls) -> "SteamOpenIDConfig | None":
        """Read STEAM_API_KEY / API_BASE_URL. None when the key is unset."""
        api_key = os.getenv("STEAM_API_KEY")
        if not api_key:
            return None
        api_base = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
        return cls(realm=api_base, return_to=f"{api_base}/auth/steam/return", api_key=api_key)


def extract_steam_id(claimed_id: str | None) -> str | None:
    """Pull the SteamID64 out of an OpenID claimed identifier URL."""
    if not claimed_id:
        return None
    match = CLAIMED_ID_PATTERN.match(claimed_id)
    return match.group(1) if match else None


class SteamOpenIDClient:
    """Adapter that verifies Steam OpenID assertions."""

    def __init__(self, config: SteamOpenIDConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    def login_url(self) -> str:
        query = urlencode({
            "openid.ns": OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.return_to": self.config.return_to,
            "openid.realm": self.config.realm,
            "openid.identity": OPENID_IDENTIFIER_SELECT,
            "openid.claimed_id": OPENID_IDENTIFIER_SELECT,
        })
        return f"{STEAM_OPENID_URL}?{query}"

    async def verify(self, params: Mapping[str, str]) -> SteamProfile:
        """Check the assertion with Steam, then load the player summary.

        Raises:
            ProviderError: assertion malformed, rejected, or summary lookup failed
        """
        if params.get("openid.mode") != "id_res":
            raise ProviderError(PROVIDER, f"unexpected openid.mode {params.get('openid.mode')!r}")
        if not same_endpoint(params.get("openid.return_to"), self.config.return_to):
            raise ProviderError(PROVIDER, "return_to does not match this site")

        steam_id = extract_steam_id(params.get("openid.claimed_id"))
        if not steam_id:
            raise ProviderError(PROVIDER, "claimed_id is not a Steam identity")

        check = {key: value for key, value in params.items() if key.startswith("openid.")}
        check["openid.mode"] = "check_authentication"

        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS, transport=self._transport) as client:
                check_response = await post_with_retry(client, STEAM_OPENID_URL, data=check)
                check_response.raise_for_status()
                if not _is_valid_assertion(check_response.text):
                    raise ProviderError(PROVIDER, "assertion rejected by Steam")

                summary_response = await get_with_retry(
                    client,
                    STEAM_PLAYER_SUMMARIES_URL,
                    params={"key": self.config.api_key, "steamids": steam_id},
                )
                summary_response.raise_for_status()
                body = json_object(summary_response, PROVIDER).get("response")
                players = dict_items(body.get("players") if isinstance(body, dict) else None)
        except httpx.HTTPStatusError as e:
            logger.warning("Steam HTTP error", extra={"status_code": e.response.status_code})
            raise ProviderError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Steam request error", extra={"error_type": type(e).__name__})
            raise ProviderError(PROVIDER, type(e).__name__) from e

        player = next((p for p in players if str(p.get("steamid")) == steam_id), None)
        if player is None:
            logger.warning("Steam player summary missing", extra={"steamId": steam_id})
            return SteamProfile(steam_id64=steam_id)

        return SteamProfile(
            steam_id64=steam_id,
            persona_name=player.get("personaname"),
            avatar_url=player.get("avatarfull") or player.get("avatarmedium") or player.get("avatar"),
            profile_url=player.get("profileurl"),
        )


def _is_valid_assertion(body: str) -> bool:
    """Parse the key:value body of a check_authentication response."""
    for line in body.splitlines():
        key, _, value = line.partition(":")
        if key.strip() == "is_valid":
            return value.strip() == "true"
    return False


def same_endpoint(url: str | None, expected: str) -> bool:
    """Scheme, host and path of url equal expected's; the query may differ."""
    if not url:
        return False
    actual, wanted = urlsplit(str(url)), urlsplit(expected)
    return (
        actual.scheme.lower() == wanted.scheme.lower()
        and actual.netloc.lower() == wanted.netloc.lower()
        and actual.path == wanted.path
    )
