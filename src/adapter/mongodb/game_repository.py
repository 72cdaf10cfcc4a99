"""MongoDB implementation of GameRepository."""

import uuid
from dataclasses import asdict
from datetime import datetime
from logging import getLogger
from pymongo.database import Database
from pymongo.errors import PyMongoError
from adapter.mongodb import (
    PSN_GAMES_COLLECTION_NAME,
    PSN_TROPHY_PROFILES_COLLECTION_NAME,
    STEAM_GAMES_COLLECTION_NAME,
    XBOX_GAMES_COLLECTION_NAME,
)
from domain.model.errors import PersistenceError
from domain.model.game import (
    AchievementCounts,
    PsnGame,
    PsnTrophySummary,
    PsnTrophyTitle,
    SteamGame,
    TrophyCounts,
    XboxGame,
)

logger = getLogger(__name__)


class MongoGameRepository:
    def __init__(self, db: Database):
        self.psn_collection = db[PSN_GAMES_COLLECTION_NAME]
        self.psn_profile_collection = db[PSN_TROPHY_PROFILES_COLLECTION_NAME]
        self.steam_collection = db[STEAM_GAMES_COLLECTION_NAME]
        self.xbox_collection = db[XBOX_GAMES_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for the game collections (one row per account and title)."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(
                self.psn_collection,
                [('user_id', 1), ('np_communication_id', 1)],
                'idx_psn_games_user_title',
                unique=True,
            )
            create_index_safe(
                self.psn_profile_collection,
                [('user_id', 1)],
                'idx_psn_trophy_profiles_user',
                unique=True,
            )
            create_index_safe(
                self.steam_collection,
                [('steam_id', 1), ('app_id', 1)],
                'idx_steam_games_account_app',
                unique=True,
            )
            create_index_safe(
                self.xbox_collection,
                [('xuid', 1), ('title_id', 1)],
                'idx_xbox_games_account_title',
                unique=True,
            )
            return True
        except Exception as e:
            logger.error("Failed to create game indexes", extra={"error": str(e)})
            return False

    # ── PSN ──────────────────────────────────────────────────

    def _to_domain(self, doc: dict) -> PsnGame:
        return PsnGame(
            id=str(doc['_id']),
            user_id=doc['user_id'],
            np_communication_id=doc['np_communication_id'],
            trophy_title_name=doc['trophy_title_name'],
            trophy_title_icon_url=doc.get('trophy_title_icon_url'),
            trophy_title_platform=doc.get('trophy_title_platform'),
            progress=doc.get('progress', 0),
            earned_trophies=TrophyCounts.from_dict(doc.get('earned_trophies')),
            last_updated_from_psn=doc.get('last_updated_from_psn'),
            updated_at=doc.get('updated_at'),
            platform=doc.get('platform', 'PSN'),
        )

    def list_psn_games(self, user_id: str) -> list[PsnGame]:
        try:
            docs = list(self.psn_collection.find({'user_id': user_id}))
        except PyMongoError as e:
            logger.error("Failed to list PSN games", extra={"userId": user_id, "error": str(e)})
            raise PersistenceError("Failed to load games") from e
        return [self._to_domain(doc) for doc in docs]

    def upsert_psn_games(self, user_id: str, titles: list[PsnTrophyTitle], synced_at: datetime) -> int:
        try:
            for title in titles:
                doc = asdict(title)
                doc.update({
                    'user_id': user_id,
                    'platform': 'PSN',
                    'last_updated_from_psn': synced_at,
                    'updated_at': synced_at,
                })
                self.psn_collection.update_one(
                    {'user_id': user_id, 'np_communication_id': title.np_communication_id},
                    {'$set': doc, '$setOnInsert': {'_id': str(uuid.uuid4()), 'created_at': synced_at}},
                    upsert=True,
                )
        except PyMongoError as e:
            logger.error("Failed to save PSN games", extra={"userId": user_id, "error": str(e)})
            raise PersistenceError("Failed to save games") from e

        logger.info("PSN games saved", extra={"userId": user_id, "count": len(titles)})
        return len(titles)

    def save_psn_trophy_summary(self, summary: PsnTrophySummary) -> None:
        doc = asdict(summary)
        try:
            self.psn_profile_collection.update_one(
                {'user_id': summary.user_id},
                {'$set': doc, '$setOnInsert': {'_id': str(uuid.uuid4())}},
                upsert=True,
            )
        except PyMongoError as e:
            logger.error("Failed to save PSN trophy summary", extra={"userId": summary.user_id, "error": str(e)})
            raise PersistenceError("Failed to save trophy summary") from e

    # ── Steam / Xbox cache ───────────────────────────────────

    def list_steam_games(self, steam_id: str, fresh_since: datetime | None = None) -> list[SteamGame]:
        query = {'steam_id': steam_id}
        if fresh_since is not None:
            query['last_updated'] = {'$gte': fresh_since}
        try:
            docs = list(self.steam_collection.find(query).sort('name', 1))
        except PyMongoError as e:
            logger.error("Failed to list Steam games", extra={"steamId": steam_id, "error": str(e)})
            raise PersistenceError("Failed to load games") from e
        return [_steam_game(doc) for doc in docs]

    def upsert_steam_games(self, games: list[SteamGame]) -> int:
        try:
            for game in games:
                self.steam_collection.update_one(
                    {'steam_id': game.steam_id, 'app_id': game.app_id},
                    {'$set': asdict(game)},
                    upsert=True,
                )
        except PyMongoError as e:
            logger.error("Failed to save Steam games", extra={"error": str(e)})
            raise PersistenceError("Failed to save games") from e
        return len(games)

    def list_xbox_games(self, xuid: str, fresh_since: datetime | None = None) -> list[XboxGame]:
        query = {'xuid': xuid}
        if fresh_since is not None:
            query['last_updated'] = {'$gte': fresh_since}
        try:
            docs = list(self.xbox_collection.find(query).sort('name', 1))
        except PyMongoError as e:
            logger.error("Failed to list Xbox games", extra={"xuid": xuid, "error": str(e)})
            raise PersistenceError("Failed to load games") from e
        return [_xbox_game(doc) for doc in docs]

    def upsert_xbox_games(self, games: list[XboxGame]) -> int:
        try:
            for game in games:
                self.xbox_collection.update_one(
                    {'xuid': game.xuid, 'title_id': game.title_id},
                    {'$set': asdict(game)},
                    upsert=True,
                )
        except PyMongoError as e:
            logger.error("Failed to save Xbox games", extra={"error": str(e)})
            raise PersistenceError("Failed to save games") from e
        return len(games)


def _steam_game(doc: dict) -> SteamGame:
    achievements = doc.get('achievements') or {}
    return SteamGame(
        steam_id=doc['steam_id'],
        app_id=doc['app_id'],
        name=doc['name'],
        playtime_forever=doc.get('playtime_forever', 0),
        img_icon_url=doc.get('img_icon_url'),
        img_logo_url=doc.get('img_logo_url'),
        rtime_last_played=doc.get('rtime_last_played'),
        achievements=AchievementCounts(
            unlocked=achievements.get('unlocked', 0),
            total=achievements.get('total', 0),
        ),
        last_updated=doc.get('last_updated'),
    )


def _xbox_game(doc: dict) -> XboxGame:
    return XboxGame(
        xuid=doc['xuid'],
        title_id=doc['title_id'],
        name=doc['name'],
        display_image=doc.get('display_image'),
        current_achievements=doc.get('current_achievements', 0),
        total_achievements=doc.get('total_achievements', 0),
        current_gamerscore=doc.get('current_gamerscore', 0),
        total_gamerscore=doc.get('total_gamerscore', 0),
        last_updated=doc.get('last_updated'),
    )
