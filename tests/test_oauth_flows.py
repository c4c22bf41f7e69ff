"""
Integration tests for the login flow handlers.

This module drives the GitHub and Twitch login routes through the Flask test
client, covering the consent redirect, token exchange, profile lookup,
session storage and the error dispatch paths.
"""

import unittest
from unittest.mock import patch, MagicMock
from urllib.parse import urlparse, parse_qs
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from flask import Flask
from oauth_login.app import create_app
from oauth_login.config import Config
from oauth_login.providers import (
    TwitchProvider, oauth_event_handler, MissingCredentialError, TokenExchangeError,
    ProfileFetchError, ProviderConfigurationError
)
from requests.exceptions import ConnectionError


TEST_ENVIRON = {
    'FLASK_SECRET_KEY': 'test-secret-key',
    'GITHUB_CLIENT_ID': 'github-client-id',
    'GITHUB_CLIENT_SECRET': 'github-client-secret',
    'TWITCH_CLIENT_ID': 'twitch-client-id',
    'TWITCH_CLIENT_SECRET': 'twitch-client-secret'
}

TWITCH_USER = {
    'id': '141981764',
    'login': 'twitchdev',
    'display_name': 'TwitchDev',
    'profile_image_url': 'https://static-cdn.jtvnw.net/avatar.png',
    'email': 'dev@example.com'
}

GITHUB_USER = {
    'id': 583231,
    'login': 'octocat',
    'name': 'The Octocat',
    'email': 'octocat@example.com',
    'avatar_url': 'https://avatars.githubusercontent.com/u/583231'
}


def make_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestLoginRoutes(unittest.TestCase):
    """Test cases for the login routes of the application."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.app = create_app(Config(environ=TEST_ENVIRON))
        self.app.config['TESTING'] = True
        self.client = self.app.test_client()

    # Consent redirect

    @patch('requests.get')
    @patch('requests.post')
    def test_twitch_redirects_without_code(self, mock_post, mock_get):
        """Test the first leg redirects to the Twitch consent page."""
        response = self.client.get('/auth/twitch')

        self.assertEqual(response.status_code, 302)
        location = urlparse(response.location)
        query = parse_qs(location.query)
        self.assertEqual(f'{location.scheme}://{location.netloc}{location.path}', 'https://id.twitch.tv/oauth2/authorize')
        self.assertEqual(query['response_type'], ['code'])
        self.assertEqual(query['client_id'], ['twitch-client-id'])
        self.assertEqual(query['redirect_uri'], ['http://localhost/auth/twitch'])
        self.assertEqual(query['scope'], ['user:read:email'])

        mock_post.assert_not_called()
        mock_get.assert_not_called()

    def test_github_redirects_without_code(self):
        """Test the first leg redirects to the GitHub consent page."""
        response = self.client.get('/auth/github')

        self.assertEqual(response.status_code, 302)
        self.assertTrue(response.location.startswith('https://github.com/login/oauth/authorize?'))
        self.assertEqual(parse_qs(urlparse(response.location).query)['client_id'], ['github-client-id'])

    def test_redirect_url_from_environment(self):
        """Test a configured redirect URL replaces the request URL."""
        environ = dict(TEST_ENVIRON, TWITCH_REDIRECT_URL='https://public.example.com/auth/twitch')
        client = create_app(Config(environ=environ)).test_client()

        response = client.get('/auth/twitch')

        query = parse_qs(urlparse(response.location).query)
        self.assertEqual(query['redirect_uri'], ['https://public.example.com/auth/twitch'])

    # Callback leg

    @patch('requests.get')
    @patch('requests.post')
    def test_twitch_login_success(self, mock_post, mock_get):
        """Test a full Twitch login stores the nickname and login time."""
        mock_post.return_value = make_response({
            'access_token': 'twitch-token',
            'refresh_token': 'twitch-refresh',
            'expires_in': 14124,
            'scope': ['user:read:email']
        })
        mock_get.return_value = make_response({'data': [TWITCH_USER]})

        response = self.client.get('/auth/twitch?code=auth-code')

        self.assertEqual(response.status_code, 302)
        self.assertEqual(urlparse(response.location).path, '/')

        post_kwargs = mock_post.call_args[1]
        self.assertEqual(post_kwargs['data']['code'], 'auth-code')
        self.assertEqual(post_kwargs['data']['redirect_uri'], '/auth/twitch')
        self.assertEqual(mock_get.call_args[1]['headers']['Authorization'], 'Bearer twitch-token')

        with self.client.session_transaction() as sess:
            self.assertEqual(sess['user'], {'twitch': 'twitchdev'})
            self.assertIsInstance(sess['logged_in_at'], int)

    @patch('requests.get')
    @patch('requests.post')
    def test_github_login_success(self, mock_post, mock_get):
        """Test a full GitHub login stores the normalized user."""
        mock_post.return_value = make_response({'access_token': 'gho_token', 'scope': 'read:user', 'token_type': 'bearer'})
        mock_get.return_value = make_response(GITHUB_USER)

        response = self.client.get('/auth/github?code=auth-code')

        self.assertEqual(response.status_code, 302)
        with self.client.session_transaction() as sess:
            stored = sess['user']['github']
            self.assertEqual(stored['id'], 583231)
            self.assertEqual(stored['nickname'], 'octocat')
            self.assertEqual(stored['avatar'], GITHUB_USER['avatar_url'])
            self.assertNotIn('logged_in_at', sess)

    @patch('requests.get')
    @patch('requests.post')
    def test_second_provider_keeps_first(self, mock_post, mock_get):
        """Test logging in with two providers keeps both users."""
        with self.client.session_transaction() as sess:
            sess['user'] = {'github': {'nickname': 'octocat'}}

        mock_post.return_value = make_response({'access_token': 'twitch-token'})
        mock_get.return_value = make_response({'data': [TWITCH_USER]})

        self.client.get('/auth/twitch?code=auth-code')

        with self.client.session_transaction() as sess:
            self.assertEqual(set(sess['user']), {'github', 'twitch'})

    # Error dispatch without on_error

    @patch('requests.get')
    @patch('requests.post')
    def test_missing_client_id(self, mock_post, mock_get):
        """Test a missing client ID fails before any outbound call."""
        environ = {key: value for key, value in TEST_ENVIRON.items() if key != 'TWITCH_CLIENT_ID'}
        client = create_app(Config(environ=environ)).test_client()

        for url in ('/auth/twitch', '/auth/twitch?code=auth-code'):
            response = client.get(url)

            self.assertEqual(response.status_code, 500)
            body = response.get_json()
            self.assertFalse(body['success'])
            self.assertEqual(body['error']['code'], 'MISSING_CREDENTIAL')

        mock_post.assert_not_called()
        mock_get.assert_not_called()

    @patch('requests.get')
    @patch('requests.post')
    def test_token_exchange_error(self, mock_post, mock_get):
        """Test a rejected code answers 401 and skips the profile request."""
        mock_post.return_value = make_response({'error': 'bad_verification_code', 'error_description': 'The code is incorrect'})

        response = self.client.get('/auth/github?code=bad-code')

        self.assertEqual(response.status_code, 401)
        error = response.get_json()['error']
        self.assertEqual(error['code'], 'TOKEN_EXCHANGE_FAILED')
        self.assertIn('bad_verification_code', error['message'])
        self.assertEqual(error['details']['data']['error_description'], 'The code is incorrect')
        mock_get.assert_not_called()

    @patch('requests.get')
    @patch('requests.post')
    def test_token_exchange_network_error(self, mock_post, mock_get):
        """Test a transport failure becomes a token exchange error."""
        mock_post.side_effect = ConnectionError('connection refused')

        response = self.client.get('/auth/twitch?code=auth-code')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error']['code'], 'TOKEN_EXCHANGE_FAILED')
        mock_get.assert_not_called()

    @patch('requests.get')
    @patch('requests.post')
    def test_empty_user_list(self, mock_post, mock_get):
        """Test an empty Helix user list answers with a profile error."""
        mock_post.return_value = make_response({'access_token': 'twitch-token', 'refresh_token': 'twitch-refresh', 'expires_in': 3600})
        mock_get.return_value = make_response({'data': []})

        response = self.client.get('/auth/twitch?code=auth-code')

        self.assertEqual(response.status_code, 500)
        error = response.get_json()['error']
        self.assertEqual(error['code'], 'PROFILE_FETCH_FAILED')
        self.assertEqual(error['details']['data']['expires_in'], 3600)

        # Tokens stay on the server
        body = response.get_data(as_text=True)
        self.assertNotIn('twitch-token', body)
        self.assertNotIn('twitch-refresh', body)

        with self.client.session_transaction() as sess:
            self.assertNotIn('user', sess)


class TestOAuthEventHandler(unittest.TestCase):
    """Test cases for the continuation dispatch of the generic handler."""

    def setUp(self):
        self.app = Flask(__name__)
        self.app_config = Config(environ=TEST_ENVIRON)
        self.provider = TwitchProvider()
        self.on_success = MagicMock(return_value='success-response')
        self.on_error = MagicMock(return_value='error-response')

    def _handler(self, **kwargs):
        kwargs.setdefault('on_success', self.on_success)
        kwargs.setdefault('on_error', self.on_error)
        return oauth_event_handler(self.provider, app_config=self.app_config, **kwargs)

    def test_on_success_required(self):
        with self.assertRaises(ProviderConfigurationError):
            oauth_event_handler(self.provider, app_config=self.app_config)

    @patch('requests.get')
    @patch('requests.post')
    def test_success_dispatch(self, mock_post, mock_get):
        mock_post.return_value = make_response({'access_token': 'tok', 'expires_in': 3600})
        mock_get.return_value = make_response({'data': [TWITCH_USER]})
        handler = self._handler()

        with self.app.test_request_context('/login?code=abc'):
            result = handler()

        self.assertEqual(result, 'success-response')
        self.on_error.assert_not_called()
        _, user, tokens = self.on_success.call_args[0]
        self.assertEqual(user.id, TWITCH_USER['id'])
        self.assertEqual(user.nickname, TWITCH_USER['login'])
        self.assertEqual(user.name, TWITCH_USER['display_name'])
        self.assertEqual(user.avatar, TWITCH_USER['profile_image_url'])
        self.assertEqual(tokens.token, 'tok')
        self.assertEqual(tokens.approved_scopes, [])

    @patch('requests.post')
    def test_token_error_dispatch(self, mock_post):
        payload = {'status': 400, 'message': 'Invalid authorization code', 'error': 'Bad Request'}
        mock_post.return_value = make_response(payload)
        handler = self._handler()

        with self.app.test_request_context('/login?code=abc'):
            result = handler()

        self.assertEqual(result, 'error-response')
        self.on_success.assert_not_called()
        error = self.on_error.call_args[0][1]
        self.assertIsInstance(error, TokenExchangeError)
        self.assertEqual(error.status_code, 401)
        self.assertEqual(error.data, payload)

    @patch('requests.get')
    @patch('requests.post')
    def test_profile_error_dispatch(self, mock_post, mock_get):
        mock_post.return_value = make_response({'access_token': 'tok'})
        mock_get.return_value = make_response({})
        handler = self._handler()

        with self.app.test_request_context('/login?code=abc'):
            handler()

        error = self.on_error.call_args[0][1]
        self.assertIsInstance(error, ProfileFetchError)
        self.assertEqual(error.data, {'access_token': 'tok'})

    def test_missing_credential_dispatch(self):
        # An empty caller value still overrides the environment
        handler = self._handler(config={'client_id': ''})

        with self.app.test_request_context('/login'):
            result = handler()

        self.assertEqual(result, 'error-response')
        self.assertIsInstance(self.on_error.call_args[0][1], MissingCredentialError)
        self.on_success.assert_not_called()

    def test_error_raised_without_on_error(self):
        app_config = Config(environ={'FLASK_SECRET_KEY': 'k'})
        handler = oauth_event_handler(self.provider, on_success=self.on_success, app_config=app_config)

        with self.app.test_request_context('/login'):
            with self.assertRaises(MissingCredentialError):
                handler()

    def test_caller_config_overrides_environment(self):
        handler = self._handler(config={'client_id': 'caller-id', 'authorization_params': {'force_verify': 'true'}})

        with self.app.test_request_context('/login'):
            response = handler()

        query = parse_qs(urlparse(response.location).query)
        self.assertEqual(query['client_id'], ['caller-id'])
        self.assertEqual(query['force_verify'], ['true'])
        self.assertEqual(query['redirect_uri'], ['http://localhost/login'])


if __name__ == '__main__':
    unittest.main()
