"""Unit tests for connection_service."""

import unittest

from services.connection_service import connect_platform, disconnect_platform, get_platform
from services.auth_service import reconcile, register
from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import ConflictError, NotFoundError, ValidationError
from domain.model.identity import SteamProfile


class TestConnectPlatform(unittest.TestCase):

    def setUp(self):
        self.repo = FakeUserRepository()
        self.user = register(self.repo, 'alice@example.com', 'pw123456')

    def test_connect_xbox(self):
        user = connect_platform(self.repo, self.user.id, 'xbox', {'xuid': '2533274800000000'})

        self.assertEqual(user.xuid, '2533274800000000')
        self.assertEqual(self.repo.get_by_id(self.user.id).xuid, '2533274800000000')

    def test_connect_psn_with_optional_fields(self):
        user = connect_platform(self.repo, self.user.id, 'PSN', {
            'psn_account_id': '123456789',
            'psn_online_id': 'alice_psn',
            'npsso': 'secret-npsso',
            'xuid': 'ignored',
        })

        self.assertEqual(user.psn_account_id, '123456789')
        self.assertEqual(user.psn_online_id, 'alice_psn')
        self.assertEqual(user.npsso, 'secret-npsso')
        self.assertIsNone(user.xuid)

    def test_missing_required_field(self):
        with self.assertRaises(ValidationError):
            connect_platform(self.repo, self.user.id, 'xbox', {'xuid': '  '})

    def test_unknown_platform(self):
        with self.assertRaises(ValidationError):
            connect_platform(self.repo, self.user.id, 'gamecube', {})

    def test_identifier_owned_by_other_user_conflicts(self):
        other = register(self.repo, 'bob@example.com', 'pw123456')
        connect_platform(self.repo, other.id, 'xbox', {'xuid': 'x-1'})

        with self.assertRaises(ConflictError):
            connect_platform(self.repo, self.user.id, 'xbox', {'xuid': 'x-1'})
        self.assertIsNone(self.repo.get_by_id(self.user.id).xuid)

    def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            connect_platform(self.repo, 'missing', 'xbox', {'xuid': 'x-1'})


class TestDisconnectPlatform(unittest.TestCase):

    def setUp(self):
        self.repo = FakeUserRepository()

    def test_disconnect_clears_fields_and_keeps_account(self):
        user = register(self.repo, 'alice@example.com', 'pw123456')
        connect_platform(self.repo, user.id, 'psn', {'psn_account_id': '1', 'npsso': 'n'})

        updated = disconnect_platform(self.repo, user.id, 'psn')

        self.assertIsNone(updated.psn_account_id)
        self.assertIsNone(updated.npsso)
        self.assertIsNotNone(self.repo.get_by_id(user.id))

    def test_cannot_disconnect_only_sign_in_method(self):
        steam_user = reconcile(self.repo, SteamProfile(steam_id64='76561197960287930'))

        with self.assertRaises(ValidationError):
            disconnect_platform(self.repo, steam_user.id, 'steam')
        self.assertEqual(self.repo.get_by_id(steam_user.id).steam_id, '76561197960287930')

    def test_disconnect_steam_when_password_exists(self):
        user = register(self.repo, 'alice@example.com', 'pw123456')
        connect_platform(self.repo, user.id, 'steam', {'steam_id': '76561197960287930'})

        updated = disconnect_platform(self.repo, user.id, 'steam')

        self.assertIsNone(updated.steam_id)


class TestGetPlatform(unittest.TestCase):

    def test_case_insensitive(self):
        self.assertEqual(get_platform('Xbox').name, 'xbox')
