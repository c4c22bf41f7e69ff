"""
Twitch OAuth 2.0 login provider.

Twitch keys the Helix API by both the access token and the application's
client ID, so the profile request carries both.

See https://dev.twitch.tv/docs/authentication/getting-tokens-oauth/
"""

from typing import Dict, Any, Optional
import requests
from requests.exceptions import RequestException

from .base_provider import BaseProvider, OAuthUser, ProviderConfig


class TwitchProvider(BaseProvider):
    """Twitch login provider using the Helix users endpoint."""

    name = 'twitch'
    display_name = 'Twitch'
    authorize_url = 'https://id.twitch.tv/oauth2/authorize'
    token_url = 'https://id.twitch.tv/oauth2/token'
    userinfo_url = 'https://api.twitch.tv/helix/users'
    email_scope = 'user:read:email'

    def get_user_info(self, config: ProviderConfig, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve the Twitch user owning the access token.

        Args:
            config: Resolved provider configuration
            access_token: Twitch user access token

        Returns:
            First user record from Helix, or None if there is none
        """
        headers = {
            'Client-ID': config.client_id,
            'Authorization': f'Bearer {access_token}'
        }

        self.logger.debug("Retrieving Twitch user information")

        try:
            response = requests.get(self.userinfo_url, headers=headers, timeout=config.timeout)
            response.raise_for_status()
            users = response.json()
        except (RequestException, ValueError) as e:
            self.logger.error(f"Twitch user info request failed: {e}")
            return None

        data = users.get('data') if isinstance(users, dict) else None
        if not data:
            self.logger.warning("Twitch returned no user for access token")
            return None

        return data[0]

    def normalize_user(self, user: Dict[str, Any]) -> OAuthUser:
        return OAuthUser(
            id=user.get('id'),
            nickname=user.get('login'),
            name=user.get('display_name'),
            email=user.get('email'),
            avatar=user.get('profile_image_url'),
            raw=user
        )
