"""PlayStation Network adapter.

Implements PsnApiPort. Sign-in follows the mobile app's OAuth flow: an
NPSSO cookie is traded for an authorization code, which is traded for a
bearer token used against the trophy API.
"""

import logging
from urllib.parse import parse_qs, urlsplit

import httpx

from adapter.external.http import API_TIMEOUT_SECONDS, dict_items, get_with_retry, json_object, post_with_retry
from domain.model.game import PsnTokens, PsnTrophySummary, PsnTrophyTitle, TrophyCounts
from port.identity_provider import ProviderError

logger = logging.getLogger(__name__)

PSN_AUTH_BASE_URL = "https://ca.account.sony.com/api/authz/v3/oauth"
PSN_TROPHY_BASE_URL = "https://m.np.playstation.com/api/trophy/v1/users/me"
PSN_CLIENT_ID = "09515159-7237-4370-9b40-3806e67c0891"
PSN_REDIRECT_URI = "com.scee.psxandroid.scecompcall://redirect"
PSN_SCOPE = "psn:mobile.v2.core psn:clientapp"
# Public client credentials of the PlayStation mobile app.
PSN_BASIC_AUTH = "Basic MDk1MTUxNTktNzIzNy00MzcwLTliNDAtMzgwNmU2N2MwODkxOnVjUGprYTV0bnRCMktxc1A="
TITLES_PAGE_SIZE = 800

PROVIDER = "psn"


class PsnClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS, transport=self._transport, follow_redirects=False)

    async def exchange_npsso_for_code(self, npsso: str) -> str:
        """Raises ProviderError when Sony does not redirect with a code."""
        params = {
            "access_type": "offline",
            "client_id": PSN_CLIENT_ID,
            "redirect_uri": PSN_REDIRECT_URI,
            "response_type": "code",
            "scope": PSN_SCOPE,
        }
        try:
            async with self._client() as client:
                response = await get_with_retry(
                    client, f"{PSN_AUTH_BASE_URL}/authorize", params=params, headers={"Cookie": f"npsso={npsso}"},
                )
        except httpx.RequestError as e:
            logger.warning("PSN authorize request error", extra={"error_type": type(e).__name__})
            raise ProviderError(PROVIDER, type(e).__name__) from e

        location = response.headers.get("location", "")
        code = parse_qs(urlsplit(location).query).get("code", [None])[0]
        if not code:
            logger.warning("PSN authorize returned no code", extra={"status_code": response.status_code})
            raise ProviderError(PROVIDER, "NPSSO token was not accepted")
        return code

    async def exchange_code_for_tokens(self, access_code: str) -> PsnTokens:
        data = {
            "code": access_code,
            "redirect_uri": PSN_REDIRECT_URI,
            "grant_type": "authorization_code",
            "token_format": "jwt",
        }
        headers = {"Authorization": PSN_BASIC_AUTH, "Accept": "application/json"}
        body = await self._call(post_with_retry, f"{PSN_AUTH_BASE_URL}/token", data=data, headers=headers)

        access_token = body.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ProviderError(PROVIDER, "token response has no access_token")
        return PsnTokens(
            access_token=access_token,
            refresh_token=body.get("refresh_token"),
            expires_in=body.get("expires_in"),
            refresh_token_expires_in=body.get("refresh_token_expires_in"),
            token_type=body.get("token_type"),
            scope=body.get("scope"),
        )

    async def fetch_trophy_titles(self, access_token: str) -> list[PsnTrophyTitle]:
        """Every trophy title of the token's owner, across pages."""
        titles: list[PsnTrophyTitle] = []
        offset = 0
        while True:
            body = await self._call(
                get_with_retry,
                f"{PSN_TROPHY_BASE_URL}/trophyTitles",
                params={"limit": TITLES_PAGE_SIZE, "offset": offset},
                headers=_bearer(access_token),
            )
            page = dict_items(body.get("trophyTitles"))
            titles.extend(_trophy_title(t) for t in page if t.get("npCommunicationId"))
            offset += len(page)
            total = body.get("totalItemCount")
            if not page or not isinstance(total, int) or offset >= total:
                break

        logger.info("Fetched PSN trophy titles", extra={"count": len(titles)})
        return titles

    async def fetch_trophy_summary(self, access_token: str) -> PsnTrophySummary:
        body = await self._call(get_with_retry, f"{PSN_TROPHY_BASE_URL}/trophySummary", headers=_bearer(access_token))
        account_id = body.get("accountId")
        if not account_id:
            raise ProviderError(PROVIDER, "trophy summary has no accountId")
        return PsnTrophySummary(
            psn_account_id=str(account_id),
            trophy_level=_number(body.get("trophyLevel")),
            progress=_number(body.get("progress")),
            tier=_number(body.get("tier")),
            earned_trophies=_trophy_counts(body.get("earnedTrophies")),
        )

    async def _call(self, send, url: str, **kwargs) -> dict:
        try:
            async with self._client() as client:
                response = await send(client, url, **kwargs)
                response.raise_for_status()
                return json_object(response, PROVIDER)
        except httpx.HTTPStatusError as e:
            logger.warning("PSN HTTP error", extra={"status_code": e.response.status_code, "url": url})
            raise ProviderError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("PSN request error", extra={"error_type": type(e).__name__, "url": url})
            raise ProviderError(PROVIDER, type(e).__name__) from e


def _bearer(access_token: str) -> dict:
    return {"Authorization": f"Bearer {access_token}"}


def _number(value) -> int:
    """PSN sends some counters as numeric strings."""
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def _trophy_counts(value) -> TrophyCounts:
    value = value if isinstance(value, dict) else {}
    return TrophyCounts(
        platinum=_number(value.get("platinum")),
        gold=_number(value.get("gold")),
        silver=_number(value.get("silver")),
        bronze=_number(value.get("bronze")),
    )


def _trophy_title(title: dict) -> PsnTrophyTitle:
    return PsnTrophyTitle(
        np_communication_id=str(title["npCommunicationId"]),
        trophy_title_name=title.get("trophyTitleName") or str(title["npCommunicationId"]),
        trophy_title_icon_url=title.get("trophyTitleIconUrl"),
        trophy_title_platform=title.get("trophyTitlePlatform"),
        progress=_number(title.get("progress")),
        earned_trophies=_trophy_counts(title.get("earnedTrophies")),
        has_trophy_groups=bool(title.get("hasTrophyGroups")),
    )
