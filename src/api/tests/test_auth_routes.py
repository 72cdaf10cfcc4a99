"""Tests for /auth routes using fake stores and identity providers."""

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from api.main import app
from api.dependencies import get_google_auth, get_session_store, get_steam_auth, get_user_repo
from api.security import SESSION_COOKIE_NAME
from api.routes.auth import OAUTH_STATE_COOKIE
from adapter.fake.identity_provider import FakeGoogleAuth, FakeSteamAuth
from adapter.fake.session_store import FakeSessionStore
from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import PersistenceError
from domain.model.identity import GoogleProfile, SteamProfile


class _RouteTestCase(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)
        self.repo = FakeUserRepository()
        self.sessions = FakeSessionStore()
        app.dependency_overrides[get_user_repo] = lambda: self.repo
        app.dependency_overrides[get_session_store] = lambda: self.sessions

    def tearDown(self):
        app.dependency_overrides.clear()

    def _register(self, email='alice@example.com', password='pw123456', name='Alice'):
        return self.client.post('/auth/register', json={'email': email, 'password': password, 'name': name})


class TestRegisterRoute(_RouteTestCase):

    def test_register_creates_user_and_session(self):
        response = self._register(email='Alice@Example.com')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['message'], 'Registration successful. User logged in.')
        self.assertEqual(body['user']['email'], 'alice@example.com')
        self.assertEqual(body['user']['name'], 'Alice')
        self.assertNotIn('password_hash', body['user'])
        self.assertIn(SESSION_COOKIE_NAME, response.cookies)
        self.assertEqual(len(self.sessions.sessions), 1)

    def test_register_duplicate_returns_409(self):
        self._register()
        response = self._register()

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['message'], 'User already exists with this email.')

    def test_register_missing_email_returns_400(self):
        response = self.client.post('/auth/register', json={'password': 'pw123456'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Email and password are required.')

    def test_register_short_password_returns_400(self):
        response = self._register(password='short')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Password must be at least 8 characters long.')

    def test_register_and_login_with_80_character_password(self):
        password = 'a' * 80

        response = self._register(email='long@example.com', password=password)
        self.assertEqual(response.status_code, 201)

        response = self.client.post('/auth/login', json={'email': 'long@example.com', 'password': password})
        self.assertEqual(response.status_code, 200)

    def test_register_malformed_email_returns_400(self):
        response = self._register(email='not-an-email')
        self.assertEqual(response.status_code, 400)

    def test_store_failure_returns_generic_500(self):
        with patch.object(self.repo, 'find_one', side_effect=PersistenceError('connection reset by 10.0.0.7')):
            response = self._register()

        self.assertEqual(response.status_code, 500)
        self.assertNotIn('10.0.0.7', response.json()['message'])


class TestLoginRoute(_RouteTestCase):

    def setUp(self):
        super().setUp()
        self._register()
        self.client.cookies.clear()

    def test_login_success(self):
        response = self.client.post('/auth/login', json={'email': 'alice@example.com', 'password': 'pw123456'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['message'], 'Login successful')
        self.assertIsNotNone(response.json()['user']['last_login_at'])
        self.assertIn(SESSION_COOKIE_NAME, response.cookies)

    def test_wrong_password_returns_generic_401(self):
        response = self.client.post('/auth/login', json={'email': 'alice@example.com', 'password': 'wrongpass'})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['message'], 'Invalid email or password.')

    def test_unknown_email_returns_same_401(self):
        response = self.client.post('/auth/login', json={'email': 'nobody@example.com', 'password': 'pw123456'})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['message'], 'Invalid email or password.')


class TestSessionAndLogout(_RouteTestCase):

    def test_me_requires_session(self):
        response = self.client.get('/api/user/me')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['message'], 'User not authenticated. Please log in.')

    def test_session_resolves_to_user(self):
        self._register()

        response = self.client.get('/api/user/me')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['email'], 'alice@example.com')

    def test_tampered_cookie_is_anonymous(self):
        response = self.client.get('/api/user/me', headers={'Cookie': f'{SESSION_COOKIE_NAME}=not-a-jwt'})
        self.assertEqual(response.status_code, 401)

    def test_logout_destroys_session_and_records_time(self):
        user_id = self._register().json()['user']['id']

        response = self.client.post('/auth/logout')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.sessions.sessions, {})
        self.assertIsNotNone(self.repo.get_by_id(user_id).last_logout_at)
        self.assertEqual(self.client.get('/api/user/me').status_code, 401)

    def test_logout_redirect(self):
        self._register()

        response = self.client.get('/auth/logout', follow_redirects=False)

        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.sessions.sessions, {})
        self.assertIn(f'{SESSION_COOKIE_NAME}=', response.headers['set-cookie'])

    def test_logout_succeeds_when_bookkeeping_fails(self):
        self._register()

        with patch.object(self.repo, 'update', side_effect=PersistenceError('down')):
            response = self.client.post('/auth/logout')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.sessions.sessions, {})


class TestGoogleRoutes(_RouteTestCase):

    def setUp(self):
        super().setUp()
        self.google = FakeGoogleAuth(profile=GoogleProfile(
            provider_user_id='g1', display_name='Bob', emails=('bob@example.com',),
        ))
        app.dependency_overrides[get_google_auth] = lambda: self.google

    def _start(self):
        response = self.client.get('/auth/google', follow_redirects=False)
        return response, response.cookies.get(OAUTH_STATE_COOKIE)

    def test_start_redirects_with_state(self):
        response, state = self._start()

        self.assertEqual(response.status_code, 302)
        self.assertIsNotNone(state)
        self.assertIn(f'state={state}', response.headers['location'])

    def test_callback_creates_user_then_updates_it(self):
        _, state = self._start()
        response = self.client.get(
            '/auth/google/callback', params={'code': 'c1', 'state': state}, follow_redirects=False,
        )

        self.assertEqual(response.status_code, 302)
        self.assertIn('/dashboard?google_login_success=true', response.headers['location'])
        self.assertIn(SESSION_COOKIE_NAME, response.cookies)

        self.google.profile = GoogleProfile(provider_user_id='g1', display_name='Bobby', emails=('bob@example.com',))
        _, state = self._start()
        self.client.get('/auth/google/callback', params={'code': 'c2', 'state': state}, follow_redirects=False)

        self.assertEqual(len(self.repo.store), 1)
        self.assertEqual(self.repo.find_one(google_id='g1').name, 'Bobby')

    def test_callback_state_mismatch_fails(self):
        self._start()
        response = self.client.get(
            '/auth/google/callback', params={'code': 'c1', 'state': 'forged'}, follow_redirects=False,
        )

        self.assertEqual(response.status_code, 302)
        self.assertIn('error=google_auth_failed', response.headers['location'])
        self.assertEqual(self.repo.store, {})

    def test_callback_access_denied(self):
        response = self.client.get(
            '/auth/google/callback', params={'error': 'access_denied'}, follow_redirects=False,
        )
        self.assertIn('error=google_auth_failed', response.headers['location'])

    def test_callback_provider_failure_redirects(self):
        self.google.error = 'token exchange failed'
        _, state = self._start()

        response = self.client.get(
            '/auth/google/callback', params={'code': 'c1', 'state': state}, follow_redirects=False,
        )

        self.assertIn('error=google_auth_failed', response.headers['location'])
        self.assertEqual(self.sessions.sessions, {})

    def test_callback_session_store_failure_redirects(self):
        _, state = self._start()

        with patch.object(self.sessions, 'create', side_effect=PersistenceError('down')):
            response = self.client.get(
                '/auth/google/callback', params={'code': 'c1', 'state': state}, follow_redirects=False,
            )

        self.assertEqual(response.status_code, 302)
        self.assertIn('error=google_auth_failed', response.headers['location'])
        self.assertNotIn(SESSION_COOKIE_NAME, response.cookies)

    def test_unconfigured_provider_returns_503(self):
        app.dependency_overrides.pop(get_google_auth)
        app.state.google_auth = None

        response = self.client.get('/auth/google', follow_redirects=False)

        self.assertEqual(response.status_code, 503)


class TestSteamRoutes(_RouteTestCase):

    def setUp(self):
        super().setUp()
        self.steam = FakeSteamAuth(profile=SteamProfile(steam_id64='76561197960287930', persona_name='Gabe'))
        app.dependency_overrides[get_steam_auth] = lambda: self.steam

    def test_start_redirects_to_steam(self):
        response = self.client.get('/auth/steam', follow_redirects=False)

        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers['location'], self.steam.login_url())

    def test_return_signs_in_and_passes_params(self):
        response = self.client.get(
            '/auth/steam/return',
            params={'openid.mode': 'id_res', 'openid.claimed_id': 'x'},
            follow_redirects=False,
        )

        self.assertEqual(response.status_code, 302)
        self.assertIn('steamid=76561197960287930', response.headers['location'])
        self.assertEqual(self.steam.last_params['openid.mode'], 'id_res')
        self.assertEqual(self.client.get('/api/user/me').json()['name'], 'Gabe')

    def test_return_failure_redirects(self):
        self.steam.error = 'rejected'

        response = self.client.get('/auth/steam/return', follow_redirects=False)

        self.assertIn('error=steam_auth_callback_failed', response.headers['location'])
        self.assertEqual(self.repo.store, {})

    def test_return_session_store_failure_redirects(self):
        with patch.object(self.sessions, 'create', side_effect=PersistenceError('down')):
            response = self.client.get('/auth/steam/return', follow_redirects=False)

        self.assertEqual(response.status_code, 302)
        self.assertIn('error=steam_auth_callback_failed', response.headers['location'])
        self.assertNotIn(SESSION_COOKIE_NAME, response.cookies)
