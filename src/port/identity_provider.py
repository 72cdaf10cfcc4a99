"""Identity provider ports: outbound interfaces for OAuth / OpenID handshakes.

Adapters perform the network and verification work and return normalized
profiles. Any failure is raised as ProviderError; the auth service wraps it.
"""

from typing import Mapping, Protocol

from domain.model.identity import GoogleProfile, SteamProfile


class ProviderError(Exception):
    """Raised by an upstream adapter (sign-in or platform data) when a call fails."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class GoogleAuthPort(Protocol):
    def authorization_url(self, state: str) -> str:
        """URL of the Google consent screen for this login attempt."""
        ...

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange an authorization code and return the user's profile."""
        ...


class SteamAuthPort(Protocol):
    def login_url(self) -> str:
        """URL of the Steam OpenID sign-in page."""
        ...

    async def verify(self, params: Mapping[str, str]) -> SteamProfile:
        """Verify the OpenID callback parameters and return the profile."""
        ...
