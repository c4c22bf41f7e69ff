"""
Unit tests for the session and provider API endpoints.
"""

import unittest
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from oauth_login.app import create_app
from oauth_login.config import Config


class TestAPIEndpoints(unittest.TestCase):
    """Test cases for the JSON API."""

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.app = create_app(Config(environ={'FLASK_SECRET_KEY': 'test-secret-key'}))
        self.app.config['TESTING'] = True
        self.client = self.app.test_client()

    def test_index_without_session(self):
        response = self.client.get('/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['data'], {})
        self.assertEqual(response.headers['X-API-Version'], '1.0')

    def test_session_requires_login(self):
        response = self.client.get('/api/session')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error']['code'], 'NOT_AUTHENTICATED')

    def test_session_with_user(self):
        with self.client.session_transaction() as sess:
            sess['user'] = {'twitch': 'twitchdev'}
            sess['logged_in_at'] = 1700000000000

        response = self.client.get('/api/session')

        self.assertEqual(response.status_code, 200)
        data = response.get_json()['data']
        self.assertEqual(data['user'], {'twitch': 'twitchdev'})
        self.assertEqual(data['logged_in_at'], 1700000000000)

    def test_logout(self):
        with self.client.session_transaction() as sess:
            sess['user'] = {'twitch': 'twitchdev'}

        response = self.client.delete('/api/session')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['data']['cleared'])
        self.assertEqual(self.client.get('/api/session').status_code, 401)

        response = self.client.delete('/api/session')
        self.assertFalse(response.get_json()['data']['cleared'])

    def test_list_providers(self):
        response = self.client.get('/api/providers')

        self.assertEqual(response.status_code, 200)
        data = response.get_json()['data']
        self.assertEqual(data['count'], 2)
        self.assertEqual([p['login_url'] for p in data['providers']], ['/auth/github', '/auth/twitch'])

    def test_not_found(self):
        response = self.client.get('/does-not-exist')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error']['code'], 'NOT_FOUND')

    def test_method_not_allowed_is_not_masked(self):
        response = self.client.post('/auth/twitch')

        self.assertEqual(response.status_code, 405)


if __name__ == '__main__':
    unittest.main()
