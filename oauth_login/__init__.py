"""
OAuth2 authorization code login handlers for Flask applications.
"""

from .providers import (
    oauth_event_handler, GithubProvider, TwitchProvider, ProviderManager,
    OAuthUser, OAuthToken, OAuthFlowError, MissingCredentialError,
    TokenExchangeError, ProfileFetchError
)
from .session import set_user_session, get_user_session, clear_user_session, require_user_session

__all__ = [
    'oauth_event_handler',
    'GithubProvider',
    'TwitchProvider',
    'ProviderManager',
    'OAuthUser',
    'OAuthToken',
    'OAuthFlowError',
    'MissingCredentialError',
    'TokenExchangeError',
    'ProfileFetchError',
    'set_user_session',
    'get_user_session',
    'clear_user_session',
    'require_user_session'
]
