"""Port definitions for platform game-data APIs.

Adapters raise port.identity_provider.ProviderError when a call fails.
"""

from typing import Protocol

from domain.model.game import GogGame, PsnTokens, PsnTrophySummary, PsnTrophyTitle, SteamGame, XboxGame


class SteamLibraryPort(Protocol):
    async def fetch_owned_games(self, steam_id: str) -> list[SteamGame]:
        """Owned games with achievement counts. Empty for a private profile."""
        ...


class XboxLibraryPort(Protocol):
    async def fetch_games(self, xuid: str) -> list[XboxGame]:
        ...


class PsnApiPort(Protocol):
    async def exchange_npsso_for_code(self, npsso: str) -> str:
        ...

    async def exchange_code_for_tokens(self, access_code: str) -> PsnTokens:
        ...

    async def fetch_trophy_titles(self, access_token: str) -> list[PsnTrophyTitle]:
        ...

    async def fetch_trophy_summary(self, access_token: str) -> PsnTrophySummary:
        ...


class GogLibraryPort(Protocol):
    async def fetch_games(self, gog_user_id: str) -> list[GogGame] | None:
        """None when the response carries no game list at all."""
        ...
