"""
Provider registry and the generic OAuth login request handler.

This module implements the authorization code flow on top of Flask: a single
handler, parameterized by a provider, that redirects to the consent page,
exchanges the returned code, fetches the user profile and hands the
normalized result to caller-supplied continuations.
"""

from typing import Dict, Any, List, Optional, Type, Callable
import logging
from flask import redirect, request

from ..config import get_config
from .base_provider import (
    BaseProvider, OAuthFlowError, OAuthToken, OAuthUser, ProfileFetchError,
    ProviderConfigurationError, TokenExchangeError
)
from .github_provider import GithubProvider
from .twitch_provider import TwitchProvider

SuccessHandler = Callable[[Any, OAuthUser, OAuthToken], Any]
ErrorHandler = Callable[[Any, OAuthFlowError], Any]


class ProviderManagerError(Exception):
    """Raised when provider manager encounters an error."""
    pass


def oauth_event_handler(provider: BaseProvider, config: Optional[Dict[str, Any]] = None,
                        on_success: Optional[SuccessHandler] = None,
                        on_error: Optional[ErrorHandler] = None,
                        app_config=None) -> Callable[[], Any]:
    """
    Build a Flask view implementing the login flow for a provider.

    Each request resolves its own configuration, then either redirects to
    the provider (no ``code`` query parameter) or completes the exchange.
    Exactly one of the redirect, ``on_error`` or ``on_success`` ends the
    request. Without ``on_error`` the flow error is raised for the
    application's error handlers to render.

    Args:
        provider: Provider descriptor
        config: Caller configuration overriding environment values
        on_success: Called as ``on_success(request, user, tokens)``
        on_error: Called as ``on_error(request, error)``
        app_config: Application configuration; defaults to the global one

    Returns:
        View function suitable for ``Flask.add_url_rule``

    Raises:
        ProviderConfigurationError: If no success handler is given
    """
    if on_success is None:
        raise ProviderConfigurationError(f"An on_success handler is required for {provider.name} login")

    logger = provider.logger

    def fail(error: OAuthFlowError):
        logger.error(f"{provider.display_name} login failed: {error}")
        if on_error is None:
            raise error
        return on_error(request, error)

    def login_handler():
        settings = app_config if app_config is not None else get_config()

        try:
            resolved = provider.resolve_config(config, settings.get_oauth_config(provider.name))
        except OAuthFlowError as e:
            return fail(e)

        redirect_url = resolved.redirect_url or request.url
        code = request.args.get('code')

        if not code:
            logger.info(f"Redirecting to {provider.display_name} authorization page")
            return redirect(provider.get_authorization_url(resolved, redirect_url))

        tokens = provider.exchange_code_for_tokens(resolved, code, redirect_url)
        if tokens.get('error') or not tokens.get('access_token'):
            return fail(TokenExchangeError(
                f"{provider.display_name} login failed: {tokens.get('error') or 'Unknown error'}",
                data=tokens,
                provider=provider.name
            ))

        try:
            user = provider.get_user_info(resolved, tokens['access_token'])
        except ProfileFetchError as e:
            return fail(e)

        if not user:
            return fail(ProfileFetchError(
                f"Could not get {provider.display_name} user",
                data=tokens,
                provider=provider.name
            ))

        logger.info(f"{provider.display_name} login completed for user: {user.get('id')}")
        return on_success(request, provider.normalize_user(user), provider.normalize_tokens(tokens))

    login_handler.__name__ = f'{provider.name}_login'
    return login_handler


class ProviderManager:
    """
    Registry of login providers.

    Maps provider names to provider classes, keeps one stateless instance
    per provider and builds login handlers bound to the application config.
    """

    def __init__(self, config=None):
        self.providers: Dict[str, BaseProvider] = {}
        self.provider_classes: Dict[str, Type[BaseProvider]] = {}
        self.logger = logging.getLogger(__name__)
        self.config = config

        self._register_builtin_providers()

    def _register_builtin_providers(self) -> None:
        self.register_provider_class(GithubProvider.name, GithubProvider)
        self.register_provider_class(TwitchProvider.name, TwitchProvider)

    def register_provider_class(self, name: str, provider_class: Type[BaseProvider]) -> None:
        """
        Register a provider class.

        Args:
            name: Provider name
            provider_class: Class inheriting from BaseProvider

        Raises:
            ProviderManagerError: If the class is not a provider
        """
        if not isinstance(provider_class, type) or not issubclass(provider_class, BaseProvider):
            raise ProviderManagerError(f"Provider class {provider_class!r} must inherit from BaseProvider")

        self.provider_classes[name] = provider_class
        self.providers.pop(name, None)
        self.logger.debug(f"Registered provider class: {name} -> {provider_class.__name__}")

    def get_provider(self, name: str) -> BaseProvider:
        """
        Get the provider instance for a name.

        Raises:
            ProviderManagerError: If the provider is unknown or misconfigured
        """
        if name not in self.providers:
            if name not in self.provider_classes:
                raise ProviderManagerError(f"Unsupported OAuth provider: {name}")
            try:
                self.providers[name] = self.provider_classes[name]()
            except ProviderConfigurationError as e:
                self.logger.error(f"Provider configuration error for {name}: {e}")
                raise ProviderManagerError(f"Failed to load provider {name}: {e}")

        return self.providers[name]

    def create_handler(self, name: str, config: Optional[Dict[str, Any]] = None,
                       on_success: Optional[SuccessHandler] = None,
                       on_error: Optional[ErrorHandler] = None) -> Callable[[], Any]:
        return oauth_event_handler(
            self.get_provider(name),
            config=config,
            on_success=on_success,
            on_error=on_error,
            app_config=self.config
        )

    def get_provider_info(self) -> List[Dict[str, Any]]:
        return [self.get_provider(name).get_provider_info() for name in sorted(self.provider_classes)]
