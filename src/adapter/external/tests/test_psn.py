"""Tests for the PSN adapter against a mocked HTTP transport."""

import unittest

import httpx

from adapter.external.psn import PSN_AUTH_BASE_URL, PSN_REDIRECT_URI, PSN_TROPHY_BASE_URL, PsnClient
from port.identity_provider import ProviderError


def _client(handler) -> tuple[PsnClient, list]:
    seen = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return PsnClient(transport=httpx.MockTransport(recording)), seen


class TestExchangeNpsso(unittest.IsolatedAsyncioTestCase):

    async def test_reads_code_from_redirect(self):
        client, seen = _client(lambda request: httpx.Response(
            302, headers={'location': f'{PSN_REDIRECT_URI}/?code=v3.abc&cid=1'},
        ))

        self.assertEqual(await client.exchange_npsso_for_code('npsso-1'), 'v3.abc')
        self.assertEqual(str(seen[0].url).split('?')[0], f'{PSN_AUTH_BASE_URL}/authorize')
        self.assertEqual(seen[0].headers['cookie'], 'npsso=npsso-1')
        self.assertEqual(seen[0].url.params['response_type'], 'code')

    async def test_redirect_without_code_raises(self):
        client, _ = _client(lambda request: httpx.Response(
            302, headers={'location': f'{PSN_REDIRECT_URI}/?error=login_required'},
        ))

        with self.assertRaises(ProviderError):
            await client.exchange_npsso_for_code('expired')


class TestExchangeCode(unittest.IsolatedAsyncioTestCase):

    async def test_returns_tokens(self):
        client, seen = _client(lambda request: httpx.Response(200, json={
            'access_token': 'at', 'refresh_token': 'rt', 'expires_in': 3599, 'token_type': 'bearer',
        }))

        tokens = await client.exchange_code_for_tokens('v3.abc')

        self.assertEqual((tokens.access_token, tokens.refresh_token, tokens.expires_in), ('at', 'rt', 3599))
        self.assertEqual(str(seen[0].url), f'{PSN_AUTH_BASE_URL}/token')
        self.assertTrue(seen[0].headers['authorization'].startswith('Basic '))
        self.assertIn(b'grant_type=authorization_code', seen[0].content)

    async def test_missing_access_token_raises(self):
        client, _ = _client(lambda request: httpx.Response(200, json={'error': 'invalid_grant'}))

        with self.assertRaises(ProviderError):
            await client.exchange_code_for_tokens('used-code')

    async def test_http_error_raises(self):
        client, _ = _client(lambda request: httpx.Response(400, json={'error': 'invalid_grant'}))

        with self.assertRaises(ProviderError):
            await client.exchange_code_for_tokens('used-code')


class TestTrophyData(unittest.IsolatedAsyncioTestCase):

    async def test_titles_across_pages(self):
        pages = {
            '0': {'totalItemCount': 2, 'trophyTitles': [{
                'npCommunicationId': 'NPWR1', 'trophyTitleName': 'Astro Bot', 'progress': 40,
                'trophyTitlePlatform': 'PS5', 'hasTrophyGroups': True,
                'earnedTrophies': {'platinum': 0, 'gold': 1, 'silver': 2, 'bronze': 3},
            }]},
            '1': {'totalItemCount': 2, 'trophyTitles': [{'npCommunicationId': 'NPWR2', 'trophyTitleName': 'Returnal'}]},
        }
        client, seen = _client(lambda request: httpx.Response(200, json=pages[request.url.params['offset']]))

        titles = await client.fetch_trophy_titles('at')

        self.assertEqual([t.np_communication_id for t in titles], ['NPWR1', 'NPWR2'])
        self.assertEqual(titles[0].earned_trophies.total, 6)
        self.assertTrue(titles[0].has_trophy_groups)
        self.assertEqual(len(seen), 2)
        self.assertEqual(seen[0].headers['authorization'], 'Bearer at')

    async def test_summary(self):
        client, seen = _client(lambda request: httpx.Response(200, json={
            'accountId': '1234567890', 'trophyLevel': '312', 'progress': 55, 'tier': 4,
            'earnedTrophies': {'platinum': 9, 'gold': 80, 'silver': 200, 'bronze': 900},
        }))

        summary = await client.fetch_trophy_summary('at')

        self.assertEqual(str(seen[0].url), f'{PSN_TROPHY_BASE_URL}/trophySummary')
        self.assertEqual(summary.psn_account_id, '1234567890')
        self.assertEqual(summary.trophy_level, 312)
        self.assertEqual(summary.earned_trophies.platinum, 9)

    async def test_expired_token_raises(self):
        client, _ = _client(lambda request: httpx.Response(401, json={'error': {'message': 'Invalid token'}}))

        with self.assertRaises(ProviderError):
            await client.fetch_trophy_summary('expired')

    async def test_non_object_summary_raises(self):
        client, _ = _client(lambda request: httpx.Response(200, json=['unexpected']))

        with self.assertRaises(ProviderError):
            await client.fetch_trophy_summary('at')
