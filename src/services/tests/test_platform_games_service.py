"""Unit tests for platform_games_service."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from adapter.fake.game_repository import FakeGameRepository
from adapter.fake.platform_api import FakeGogLibrary, FakePsnApi, FakeSteamLibrary, FakeXboxLibrary
from domain.model.errors import (
    AuthenticationError,
    NotFoundError,
    PersistenceError,
    UpstreamServiceError,
    ValidationError,
)
from domain.model.game import (
    AchievementCounts,
    GogGame,
    PsnTrophySummary,
    PsnTrophyTitle,
    SteamGame,
    TrophyCounts,
    XboxGame,
)
from services import platform_games_service as service

STEAM_ID = '76561197960287930'
NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _steam_game(app_id, name, last_updated=NOW, **overrides) -> SteamGame:
    return SteamGame(steam_id=STEAM_ID, app_id=app_id, name=name, last_updated=last_updated, **overrides)


class TestSteamGames(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.repo = FakeGameRepository()
        self.api = FakeSteamLibrary([
            _steam_game(620, 'Portal 2', achievements=AchievementCounts(unlocked=2, total=3)),
            _steam_game(70, 'Half-Life'),
        ])

    async def test_fetches_sorts_and_caches(self):
        games = await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW)

        self.assertEqual([g.name for g in games], ['Half-Life', 'Portal 2'])
        self.assertEqual(len(self.repo.steam_games), 2)
        self.assertEqual(self.api.calls, [STEAM_ID])

    async def test_fresh_cache_skips_upstream(self):
        await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW)

        games = await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW + timedelta(hours=23))

        self.assertEqual(len(games), 2)
        self.assertEqual(self.api.calls, [STEAM_ID])

    async def test_stale_cache_refetches(self):
        self.repo.upsert_steam_games([_steam_game(1, 'Old', last_updated=NOW - timedelta(hours=25))])

        await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW)

        self.assertEqual(self.api.calls, [STEAM_ID])

    async def test_cache_failures_fall_back_to_upstream(self):
        with patch.object(self.repo, 'list_steam_games', side_effect=PersistenceError('down')), \
                patch.object(self.repo, 'upsert_steam_games', side_effect=PersistenceError('down')):
            games = await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW)

        self.assertEqual(len(games), 2)

    async def test_upstream_failure_raises_upstream_service_error(self):
        self.api.error = 'HTTP 500'

        with self.assertRaises(UpstreamServiceError) as ctx:
            await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW)
        self.assertEqual(ctx.exception.message, 'Failed to fetch Steam games.')

    async def test_empty_library_is_not_cached(self):
        self.api.games = []

        self.assertEqual(await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW), [])
        await service.get_steam_games(self.repo, self.api, STEAM_ID, now=NOW)
        self.assertEqual(len(self.api.calls), 2)

    async def test_missing_steam_id(self):
        with self.assertRaises(ValidationError):
            await service.get_steam_games(self.repo, self.api, '')


class TestXboxGames(unittest.IsolatedAsyncioTestCase):

    async def test_fetch_then_cache(self):
        repo = FakeGameRepository()
        api = FakeXboxLibrary([XboxGame(xuid='', title_id='1', name='Halo', last_updated=NOW)])

        await service.get_xbox_games(repo, api, 'x-1', now=NOW)
        games = await service.get_xbox_games(repo, api, 'x-1', now=NOW + timedelta(hours=1))

        self.assertEqual([g.xuid for g in games], ['x-1'])
        self.assertEqual(api.calls, ['x-1'])

    async def test_upstream_failure(self):
        with self.assertRaises(UpstreamServiceError):
            await service.get_xbox_games(FakeGameRepository(), FakeXboxLibrary(error='HTTP 401'), 'x-1')


class TestGogGames(unittest.IsolatedAsyncioTestCase):

    async def test_returns_games(self):
        games = await service.get_gog_games(FakeGogLibrary([GogGame(app_id=1, name='The Witcher')]), 'gog-1')
        self.assertEqual(games[0].name, 'The Witcher')

    async def test_no_game_list_is_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            await service.get_gog_games(FakeGogLibrary(None), 'gog-1')
        self.assertEqual(ctx.exception.message, 'No games found for this GOG user or API structure changed.')


class TestPsnAuth(unittest.IsolatedAsyncioTestCase):

    async def test_npsso_required(self):
        with self.assertRaises(ValidationError) as ctx:
            await service.psn_initiate_auth(FakePsnApi(), None)
        self.assertEqual(ctx.exception.message, 'NPSSO token is required.')

    async def test_access_code_required(self):
        with self.assertRaises(ValidationError) as ctx:
            await service.psn_exchange_code(FakePsnApi(), '')
        self.assertEqual(ctx.exception.message, 'Access code is required.')

    async def test_npsso_then_code_exchange(self):
        api = FakePsnApi()

        code = await service.psn_initiate_auth(api, 'npsso-1')
        tokens = await service.psn_exchange_code(api, code)

        self.assertEqual(tokens.access_token, 'token-for-code-for-npsso-1')

    async def test_exchange_failure(self):
        with self.assertRaises(UpstreamServiceError):
            await service.psn_initiate_auth(FakePsnApi(error='rejected'), 'npsso-1')


class TestPsnSync(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.repo = FakeGameRepository()
        self.api = FakePsnApi(
            titles=[
                PsnTrophyTitle(np_communication_id='NPWR2', trophy_title_name='Returnal', progress=10),
                PsnTrophyTitle(
                    np_communication_id='NPWR1', trophy_title_name='Astro Bot',
                    earned_trophies=TrophyCounts(gold=1),
                ),
            ],
            summary=PsnTrophySummary(psn_account_id='acc-1', trophy_level=312, tier=4),
        )

    async def test_sync_games_upserts_per_title(self):
        games = await service.sync_psn_games(self.repo, self.api, 'user-1', 'at', now=NOW)

        self.assertEqual([g.trophy_title_name for g in games], ['Astro Bot', 'Returnal'])
        self.assertEqual(games[0].last_updated_from_psn, NOW)
        self.assertEqual(self.api.last_token, 'at')

        self.api.titles = [PsnTrophyTitle(np_communication_id='NPWR2', trophy_title_name='Returnal', progress=55)]
        games = await service.sync_psn_games(self.repo, self.api, 'user-1', 'at', now=NOW)

        self.assertEqual(len(games), 2)
        self.assertEqual(next(g for g in games if g.np_communication_id == 'NPWR2').progress, 55)

    async def test_sync_requires_token(self):
        with self.assertRaises(AuthenticationError) as ctx:
            await service.sync_psn_games(self.repo, self.api, 'user-1', None)
        self.assertEqual(ctx.exception.message, 'Access token is required.')

    async def test_sync_upstream_failure(self):
        self.api.error = 'HTTP 401'

        with self.assertRaises(UpstreamServiceError):
            await service.sync_psn_games(self.repo, self.api, 'user-1', 'expired')
        self.assertEqual(self.repo.psn_games, [])

    async def test_trophy_summary_saved_per_user(self):
        summary = await service.sync_psn_trophy_summary(self.repo, self.api, 'user-1', 'at', now=NOW)

        self.assertEqual(summary.user_id, 'user-1')
        self.assertEqual(self.repo.psn_summaries['user-1'].trophy_level, 312)
        self.assertEqual(self.repo.psn_summaries['user-1'].last_updated_from_psn, NOW)

    async def test_trophy_summary_requires_token(self):
        with self.assertRaises(AuthenticationError):
            await service.sync_psn_trophy_summary(self.repo, self.api, 'user-1', '')
