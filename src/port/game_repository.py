"""Port definition for stored platform games."""

from datetime import datetime
from typing import Protocol

from domain.model.game import PsnGame, PsnTrophySummary, PsnTrophyTitle, SteamGame, XboxGame


class GameRepository(Protocol):
    def list_psn_games(self, user_id: str) -> list[PsnGame]:
        """Return every stored PSN title for a user."""
        ...

    def upsert_psn_games(self, user_id: str, titles: list[PsnTrophyTitle], synced_at: datetime) -> int:
        """Insert or refresh titles keyed on (user_id, np_communication_id). Return how many were written."""
        ...

    def save_psn_trophy_summary(self, summary: PsnTrophySummary) -> None:
        """Replace the user's single trophy summary."""
        ...

    def list_steam_games(self, steam_id: str, fresh_since: datetime | None = None) -> list[SteamGame]:
        """Stored games for steam_id, by name. With fresh_since, only rows updated at or after it."""
        ...

    def upsert_steam_games(self, games: list[SteamGame]) -> int:
        ...

    def list_xbox_games(self, xuid: str, fresh_since: datetime | None = None) -> list[XboxGame]:
        ...

    def upsert_xbox_games(self, games: list[XboxGame]) -> int:
        ...
