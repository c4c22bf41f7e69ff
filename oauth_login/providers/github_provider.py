"""
GitHub OAuth 2.0 login provider.

This module implements the GitHub OAuth App login flow, including the
fallback lookup of the primary verified email for users who keep their
email address private.

See https://docs.github.com/en/apps/oauth-apps/building-oauth-apps/authorizing-oauth-apps
"""

from typing import Dict, Any, Optional
import requests
from requests.exceptions import RequestException

from .base_provider import BaseProvider, OAuthUser, OAuthToken, ProfileFetchError, ProviderConfig


class GithubProvider(BaseProvider):
    """GitHub login provider using the REST user endpoints."""

    name = 'github'
    display_name = 'GitHub'
    authorize_url = 'https://github.com/login/oauth/authorize'
    token_url = 'https://github.com/login/oauth/access_token'
    userinfo_url = 'https://api.github.com/user'
    emails_url = 'https://api.github.com/user/emails'
    email_scope = 'user:email'

    user_agent = 'oauth-login'

    def token_request_headers(self) -> Dict[str, str]:
        # GitHub answers with a form-encoded body unless JSON is requested
        headers = super().token_request_headers()
        headers['Accept'] = 'application/json'
        return headers

    def token_request_data(self, config: ProviderConfig, code: str, redirect_uri: str) -> Dict[str, Any]:
        # GitHub rejects a redirect_uri that differs from the registered
        # callback URL and does not require one, so it is left out
        data = super().token_request_data(config, code, redirect_uri)
        del data['redirect_uri']
        return data

    def _api_headers(self, access_token: str) -> Dict[str, str]:
        return {
            'Authorization': f'token {access_token}',
            'Accept': 'application/vnd.github+json',
            'User-Agent': self.user_agent
        }

    def get_user_info(self, config: ProviderConfig, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve the GitHub user owning the access token.

        When an email is required and the profile has none, the primary
        verified address is looked up through the emails endpoint.

        Args:
            config: Resolved provider configuration
            access_token: GitHub user access token

        Returns:
            User profile, or None if GitHub returned no usable user

        Raises:
            ProfileFetchError: If an email is required but none is verified
        """
        self.logger.debug("Retrieving GitHub user information")

        try:
            response = requests.get(
                self.userinfo_url,
                headers=self._api_headers(access_token),
                timeout=config.timeout
            )
            response.raise_for_status()
            user = response.json()
        except (RequestException, ValueError) as e:
            self.logger.error(f"GitHub user info request failed: {e}")
            return None

        if not isinstance(user, dict) or not user.get('id'):
            self.logger.warning("GitHub returned no user for access token")
            return None

        if config.email_required and not user.get('email'):
            user = dict(user, email=self._get_primary_email(config, access_token))

        return user

    def _get_primary_email(self, config: ProviderConfig, access_token: str) -> str:
        try:
            response = requests.get(
                self.emails_url,
                headers=self._api_headers(access_token),
                timeout=config.timeout
            )
            response.raise_for_status()
            emails = response.json()
        except (RequestException, ValueError) as e:
            self.logger.error(f"GitHub user emails request failed: {e}")
            raise ProfileFetchError("Could not get GitHub user email", provider=self.name)

        for entry in emails if isinstance(emails, list) else []:
            if entry.get('primary') and entry.get('verified'):
                return entry['email']

        raise ProfileFetchError("Could not get GitHub user email", data={'emails': emails}, provider=self.name)

    def normalize_user(self, user: Dict[str, Any]) -> OAuthUser:
        return OAuthUser(
            id=user.get('id'),
            nickname=user.get('login'),
            name=user.get('name'),
            email=user.get('email'),
            avatar=user.get('avatar_url'),
            raw=user
        )

    def normalize_tokens(self, tokens: Dict[str, Any]) -> OAuthToken:
        # GitHub reports granted scopes as one comma-separated string
        scope = tokens.get('scope') or ''
        return OAuthToken(
            token=tokens.get('access_token'),
            refresh_token=tokens.get('refresh_token'),
            expires_in=tokens.get('expires_in'),
            approved_scopes=[s for s in scope.split(',') if s]
        )
