"""Tests for the Steam Web API adapter against a mocked HTTP transport."""

import unittest
from datetime import datetime, timezone

import httpx

from adapter.external.steam_web_api import (
    STEAM_OWNED_GAMES_URL,
    STEAM_PLAYER_ACHIEVEMENTS_URL,
    SteamWebApiClient,
)
from port.identity_provider import ProviderError

STEAM_ID = '76561197960287930'


def _transport(owned_status=200, owned_body=None, achievements=None):
    """achievements maps appid -> (status, body)."""
    seen = []
    achievements = achievements or {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        url = str(request.url).split('?')[0]
        if url == STEAM_OWNED_GAMES_URL:
            return httpx.Response(owned_status, json=owned_body if owned_body is not None else {'response': {}})
        if url == STEAM_PLAYER_ACHIEVEMENTS_URL:
            status, body = achievements.get(request.url.params['appid'], (400, {'playerstats': {'success': False}}))
            return httpx.Response(status, json=body)
        return httpx.Response(404)

    return httpx.MockTransport(handler), seen


def _client(transport) -> SteamWebApiClient:
    return SteamWebApiClient('steam-key', transport=transport, achievement_delay=0)


class TestFetchOwnedGames(unittest.IsolatedAsyncioTestCase):

    async def test_games_with_achievement_counts(self):
        transport, seen = _transport(
            owned_body={'response': {'game_count': 2, 'games': [
                {'appid': 620, 'name': 'Portal 2', 'playtime_forever': 300,
                 'img_icon_url': 'icon620', 'rtime_last_played': 1700000000},
                {'appid': 70, 'name': 'Half-Life', 'playtime_forever': 12},
            ]}},
            achievements={'620': (200, {'playerstats': {'achievements': [
                {'apiname': 'A', 'achieved': 1},
                {'apiname': 'B', 'achieved': 0},
                {'apiname': 'C', 'achieved': 1},
            ]}})},
        )

        games = await _client(transport).fetch_owned_games(STEAM_ID)

        portal, half_life = games
        self.assertEqual(portal.app_id, 620)
        self.assertEqual(portal.playtime_forever, 300)
        self.assertEqual((portal.achievements.unlocked, portal.achievements.total), (2, 3))
        self.assertEqual(portal.rtime_last_played, datetime.fromtimestamp(1700000000, timezone.utc))
        self.assertEqual((half_life.achievements.unlocked, half_life.achievements.total), (0, 0))
        self.assertIsNotNone(half_life.last_updated)

        owned_request = seen[0]
        self.assertEqual(owned_request.url.params['key'], 'steam-key')
        self.assertEqual(owned_request.url.params['steamid'], STEAM_ID)
        self.assertEqual(owned_request.url.params['include_appinfo'], 'true')

    async def test_private_profile_returns_empty_list(self):
        transport, seen = _transport(owned_body={'response': {}})

        self.assertEqual(await _client(transport).fetch_owned_games(STEAM_ID), [])
        self.assertEqual(len(seen), 1)

    async def test_entries_without_appid_skipped(self):
        transport, _ = _transport(owned_body={'response': {'games': ['junk', {'name': 'No id'}, {'appid': 10}]}})

        games = await _client(transport).fetch_owned_games(STEAM_ID)

        self.assertEqual([(g.app_id, g.name) for g in games], [(10, 'App 10')])

    async def test_http_error_raises_provider_error(self):
        transport, _ = _transport(owned_status=403)

        with self.assertRaises(ProviderError):
            await _client(transport).fetch_owned_games(STEAM_ID)

    async def test_non_object_body_raises_provider_error(self):
        transport, _ = _transport(owned_body=[1, 2, 3])

        with self.assertRaises(ProviderError):
            await _client(transport).fetch_owned_games(STEAM_ID)
