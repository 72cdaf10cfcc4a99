"""Google OAuth 2.0 adapter.

Implements GoogleAuthPort with the authorization-code flow: build the consent
URL, exchange the returned code for an access token, then read the OpenID
Connect userinfo endpoint.

API Documentation: https://developers.google.com/identity/protocols/oauth2/web-server
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from adapter.external.http import API_TIMEOUT_SECONDS, get_with_retry, json_object, post_with_retry
from domain.model.identity import GoogleProfile
from port.identity_provider import ProviderError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = ("openid", "email", "profile")

PROVIDER = "google"


@dataclass(frozen=True)
class GoogleOAuthConfig:
    client_id: str
    client_secret: str
    redirect_uri: str

    @classmethod
    def from_env(cls) -> "GoogleOAuthConfig | None":
        """Read GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET. None when unset."""
        client_id = os.getenv("GOOGLE_CLIENT_ID")
        client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
        if not client_id or not client_secret:
            return None
        api_base = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=f"{api_base}/auth/google/callback",
        )


class GoogleOAuthClient:
    """Adapter that runs the Google authorization-code exchange."""

    def __init__(self, config: GoogleOAuthConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    def authorization_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
            "prompt": "select_account",
        })
        return f"{GOOGLE_AUTH_URL}?{query}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange an authorization code and return the user's profile.

        Raises:
            ProviderError: token exchange or userinfo lookup failed
        """
        if not code:
            raise ProviderError(PROVIDER, "missing authorization code")

        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS, transport=self._transport) as client:
                token_response = await post_with_retry(client, GOOGLE_TOKEN_URL, data={
                    "code": code,
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "redirect_uri": self.config.redirect_uri,
                    "grant_type": "authorization_code",
                }, headers={"Accept": "application/json"})
                token_response.raise_for_status()
                access_token = json_object(token_response, PROVIDER).get("access_token")
                if not access_token:
                    raise ProviderError(PROVIDER, "token response had no access_token")

                userinfo_response = await get_with_retry(
                    client,
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                userinfo_response.raise_for_status()
                userinfo = json_object(userinfo_response, PROVIDER)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Google OAuth HTTP error",
                extra={"status_code": e.response.status_code, "url": str(e.request.url)},
            )
            raise ProviderError(PROVIDER, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Google OAuth request error", extra={"error_type": type(e).__name__})
            raise ProviderError(PROVIDER, type(e).__name__) from e

        return profile_from_userinfo(userinfo)


def profile_from_userinfo(userinfo: dict) -> GoogleProfile:
    """Normalize an OpenID Connect userinfo payload.

    Unverified addresses are dropped so they can never be used to link
    into an existing account.
    """
    subject = userinfo.get("sub")
    if not subject:
        raise ProviderError(PROVIDER, "userinfo had no subject")

    emails: tuple[str, ...] = ()
    email = userinfo.get("email")
    if email and userinfo.get("email_verified", True) is not False:
        emails = (email,)

    return GoogleProfile(
        provider_user_id=str(subject),
        display_name=userinfo.get("name"),
        emails=emails,
        avatar_url=userinfo.get("picture"),
    )
