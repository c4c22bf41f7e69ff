"""
OAuth login providers.

This package provides the generic authorization code login flow and the
provider descriptors plugged into it.
"""

from .base_provider import (
    BaseProvider, ProviderConfig, OAuthUser, OAuthToken,
    ProviderConfigurationError, OAuthFlowError, MissingCredentialError,
    TokenExchangeError, ProfileFetchError
)
from .github_provider import GithubProvider
from .twitch_provider import TwitchProvider
from .provider_manager import ProviderManager, ProviderManagerError, oauth_event_handler

__all__ = [
    'BaseProvider',
    'ProviderConfig',
    'OAuthUser',
    'OAuthToken',
    'ProviderManager',
    'GithubProvider',
    'TwitchProvider',
    'oauth_event_handler',
    'ProviderConfigurationError',
    'OAuthFlowError',
    'MissingCredentialError',
    'TokenExchangeError',
    'ProfileFetchError',
    'ProviderManagerError'
]
