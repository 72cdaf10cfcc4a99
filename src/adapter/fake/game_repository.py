"""In-memory implementation of GameRepository for testing."""

import uuid
from dataclasses import replace
from datetime import datetime

from domain.model.game import PsnGame, PsnTrophySummary, PsnTrophyTitle, SteamGame, XboxGame


class FakeGameRepository:
    def __init__(self, games: list[PsnGame] | None = None):
        self.psn_games: list[PsnGame] = list(games or [])
        self.psn_summaries: dict[str, PsnTrophySummary] = {}
        self.steam_games: dict[tuple[str, int], SteamGame] = {}
        self.xbox_games: dict[tuple[str, str], XboxGame] = {}

    def list_psn_games(self, user_id: str) -> list[PsnGame]:
        return [g for g in self.psn_games if g.user_id == user_id]

    def upsert_psn_games(self, user_id: str, titles: list[PsnTrophyTitle], synced_at: datetime) -> int:
        for title in titles:
            existing = next(
                (g for g in self.psn_games
                 if g.user_id == user_id and g.np_communication_id == title.np_communication_id),
                None,
            )
            game = PsnGame(
                id=existing.id if existing else str(uuid.uuid4()),
                user_id=user_id,
                np_communication_id=title.np_communication_id,
                trophy_title_name=title.trophy_title_name,
                trophy_title_icon_url=title.trophy_title_icon_url,
                trophy_title_platform=title.trophy_title_platform,
                progress=title.progress,
                earned_trophies=title.earned_trophies,
                last_updated_from_psn=synced_at,
                updated_at=synced_at,
            )
            if existing:
                self.psn_games[self.psn_games.index(existing)] = game
            else:
                self.psn_games.append(game)
        return len(titles)

    def save_psn_trophy_summary(self, summary: PsnTrophySummary) -> None:
        self.psn_summaries[summary.user_id] = replace(summary)

    def list_steam_games(self, steam_id: str, fresh_since: datetime | None = None) -> list[SteamGame]:
        games = [
            g for (sid, _), g in self.steam_games.items()
            if sid == steam_id and (fresh_since is None or (g.last_updated and g.last_updated >= fresh_since))
        ]
        return sorted(games, key=lambda g: g.name)

    def upsert_steam_games(self, games: list[SteamGame]) -> int:
        for game in games:
            self.steam_games[(game.steam_id, game.app_id)] = replace(game)
        return len(games)

    def list_xbox_games(self, xuid: str, fresh_since: datetime | None = None) -> list[XboxGame]:
        games = [
            g for (x, _), g in self.xbox_games.items()
            if x == xuid and (fresh_since is None or (g.last_updated and g.last_updated >= fresh_since))
        ]
        return sorted(games, key=lambda g: g.name)

    def upsert_xbox_games(self, games: list[XboxGame]) -> int:
        for game in games:
            self.xbox_games[(game.xuid, game.title_id)] = replace(game)
        return len(games)
