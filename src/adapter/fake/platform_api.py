"""Fake platform game-data adapters that return preconfigured data."""

from dataclasses import replace

from domain.model.game import GogGame, PsnTokens, PsnTrophySummary, PsnTrophyTitle, SteamGame, XboxGame
from port.identity_provider import ProviderError


class FakeSteamLibrary:
    def __init__(self, games: list[SteamGame] | None = None, error: str | None = None):
        self.games = list(games or [])
        self.error = error
        self.calls: list[str] = []

    async def fetch_owned_games(self, steam_id: str) -> list[SteamGame]:
        self.calls.append(steam_id)
        if self.error:
            raise ProviderError("steam", self.error)
        return [replace(g, steam_id=steam_id) for g in self.games]


class FakeXboxLibrary:
    def __init__(self, games: list[XboxGame] | None = None, error: str | None = None):
        self.games = list(games or [])
        self.error = error
        self.calls: list[str] = []

    async def fetch_games(self, xuid: str) -> list[XboxGame]:
        self.calls.append(xuid)
        if self.error:
            raise ProviderError("xbox", self.error)
        return [replace(g, xuid=xuid) for g in self.games]


class FakePsnApi:
    def __init__(
        self,
        titles: list[PsnTrophyTitle] | None = None,
        summary: PsnTrophySummary | None = None,
        error: str | None = None,
    ):
        self.titles = list(titles or [])
        self.summary = summary
        self.error = error
        self.last_token: str | None = None

    def _check(self):
        if self.error:
            raise ProviderError("psn", self.error)

    async def exchange_npsso_for_code(self, npsso: str) -> str:
        self._check()
        return f"code-for-{npsso}"

    async def exchange_code_for_tokens(self, access_code: str) -> PsnTokens:
        self._check()
        return PsnTokens(access_token=f"token-for-{access_code}", refresh_token="refresh", expires_in=3600)

    async def fetch_trophy_titles(self, access_token: str) -> list[PsnTrophyTitle]:
        self.last_token = access_token
        self._check()
        return list(self.titles)

    async def fetch_trophy_summary(self, access_token: str) -> PsnTrophySummary:
        self.last_token = access_token
        self._check()
        if self.summary is None:
            raise ProviderError("psn", "no summary configured")
        return replace(self.summary)


class FakeGogLibrary:
    def __init__(self, games: list[GogGame] | None = None, error: str | None = None):
        self.games = games
        self.error = error

    async def fetch_games(self, gog_user_id: str) -> list[GogGame] | None:
        if self.error:
            raise ProviderError("gog", self.error)
        return self.games
