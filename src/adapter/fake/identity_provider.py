"""Fake identity provider adapters that return preconfigured profiles."""

from typing import Mapping

from domain.model.identity import GoogleProfile, SteamProfile
from port.identity_provider import ProviderError


class FakeGoogleAuth:
    def __init__(self, profile: GoogleProfile | None = None, error: str | None = None):
        self.profile = profile
        self.error = error
        self.last_code: str | None = None

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.test/auth?state={state}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        self.last_code = code
        if self.error or self.profile is None:
            raise ProviderError("google", self.error or "no profile configured")
        return self.profile


class FakeSteamAuth:
    def __init__(self, profile: SteamProfile | None = None, error: str | None = None):
        self.profile = profile
        self.error = error
        self.last_params: dict | None = None

    def login_url(self) -> str:
        return "https://steam.example.test/openid/login"

    async def verify(self, params: Mapping[str, str]) -> SteamProfile:
        self.last_params = dict(params)
        if self.error or self.profile is None:
            raise ProviderError("steam", self.error or "no profile configured")
        return self.profile
