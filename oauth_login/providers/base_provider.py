"""
Base provider interface for OAuth 2.0 authorization code login.

This module defines the abstract base class that describes a login provider
(endpoints, scopes, profile lookup and normalization) together with the
generic pieces of the authorization code flow: configuration resolution,
authorization URL construction and the code-for-token exchange.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, asdict
from typing import Dict, Any, Optional, List, Tuple
import logging
from urllib.parse import urlparse
import requests
from authlib.common.urls import add_params_to_uri
from requests.exceptions import RequestException

from ..api_responses import ErrorCodes


DEFAULT_TIMEOUT = 30

SECRET_TOKEN_FIELDS = frozenset(['access_token', 'refresh_token', 'id_token'])


def redact_tokens(data: Any) -> Any:
    """Replace token values in a provider payload before it leaves the server."""
    if not isinstance(data, dict):
        return data
    return {
        key: '[REDACTED]' if key in SECRET_TOKEN_FIELDS and value else redact_tokens(value)
        for key, value in data.items()
    }


def as_scope_list(scope: Any) -> List[str]:
    """Accept scopes as a sequence or as one space-delimited string."""
    if scope is None:
        return []
    if isinstance(scope, str):
        return scope.split()
    if isinstance(scope, (list, tuple)):
        return list(scope)
    raise ProviderConfigurationError(f"scope must be a string or a list of strings, got: {type(scope).__name__}")


class ProviderConfigurationError(Exception):
    """Raised when provider configuration is invalid."""
    pass


class OAuthFlowError(Exception):
    """
    Raised when the OAuth flow cannot complete.

    Carries the HTTP status the hosting application should answer with and
    the raw provider payload, when one is available, for diagnostics.
    """

    status_code = 500
    error_code = ErrorCodes.OAUTH_ERROR

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None,
                 provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.data = data
        self.provider = provider

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for an HTTP response; token values in the payload are redacted."""
        details = {}
        if self.provider:
            details['provider'] = self.provider
        if self.data is not None:
            details['data'] = redact_tokens(self.data)
        return {
            'code': self.error_code,
            'message': self.message,
            'status_code': self.status_code,
            'details': details
        }


class MissingCredentialError(OAuthFlowError):
    """Raised when the provider client ID is not configured."""
    status_code = 500
    error_code = ErrorCodes.MISSING_CREDENTIAL


class TokenExchangeError(OAuthFlowError):
    """Raised when the provider rejects the authorization code."""
    status_code = 401
    error_code = ErrorCodes.TOKEN_EXCHANGE_FAILED


class ProfileFetchError(OAuthFlowError):
    """Raised when the provider returns no usable user profile."""
    status_code = 500
    error_code = ErrorCodes.PROFILE_FETCH_FAILED


@dataclass(frozen=True)
class ProviderConfig:
    """Fully resolved configuration for one login request."""
    client_id: str
    client_secret: Optional[str] = None
    scope: Tuple[str, ...] = ()
    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    redirect_url: Optional[str] = None
    authorization_params: Dict[str, str] = field(default_factory=dict)
    email_required: bool = False
    timeout: float = DEFAULT_TIMEOUT


CONFIG_FIELDS = frozenset(f.name for f in fields(ProviderConfig))


@dataclass
class OAuthUser:
    """Provider user profile mapped onto the application's user shape."""
    id: Any
    nickname: Optional[str]
    name: Optional[str]
    avatar: Optional[str]
    email: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OAuthToken:
    """Provider token response mapped onto the application's token shape."""
    token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    approved_scopes: List[str] = field(default_factory=list)


class BaseProvider(ABC):
    """
    Abstract base class for OAuth 2.0 login providers.

    A provider is a stateless descriptor: it holds endpoint defaults and the
    provider-specific rules (email scope, profile request, normalization).
    Everything that varies per request is passed in as a ProviderConfig.
    """

    name: str = ''
    display_name: str = ''
    authorize_url: Optional[str] = None
    token_url: Optional[str] = None
    userinfo_url: Optional[str] = None
    email_scope: Optional[str] = None

    def __init__(self):
        if not self.name:
            raise ProviderConfigurationError(f"{self.__class__.__name__} must define a provider name")

        self.display_name = self.display_name or self.name.title()
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

        for url_field in ('authorize_url', 'token_url', 'userinfo_url'):
            url = getattr(self, url_field)
            if url and not self._is_valid_url(url):
                raise ProviderConfigurationError(f"Invalid {url_field} for {self.name} provider: {url}")

    def _is_valid_url(self, url: str) -> bool:
        result = urlparse(url)
        return bool(result.scheme and result.netloc)

    def default_config(self) -> Dict[str, Any]:
        """
        Get the hard-coded configuration defaults for this provider.

        Returns:
            Default configuration values (endpoints and empty extra params)
        """
        return {
            'authorization_url': self.authorize_url,
            'token_url': self.token_url,
            'authorization_params': {},
            'scope': ()
        }

    def resolve_config(self, overrides: Optional[Dict[str, Any]] = None,
                       environment: Optional[Dict[str, Any]] = None) -> ProviderConfig:
        """
        Merge caller configuration, environment values and provider defaults.

        The merge is shallow and field by field: a caller value wins over an
        environment value, which wins over the provider default. ``None``
        never overrides a lower layer.

        Args:
            overrides: Caller-supplied configuration, possibly partial
            environment: Values loaded from the process environment

        Returns:
            Fully populated provider configuration

        Raises:
            ProviderConfigurationError: If the caller passes unknown settings
            MissingCredentialError: If no client ID is available
        """
        overrides = overrides or {}
        unknown = set(overrides) - CONFIG_FIELDS
        if unknown:
            raise ProviderConfigurationError(
                f"Unknown configuration for {self.name} provider: {', '.join(sorted(unknown))}"
            )

        merged: Dict[str, Any] = {}
        for layer in (self.default_config(), environment or {}, overrides):
            for key, value in layer.items():
                if key in CONFIG_FIELDS and value is not None:
                    merged[key] = value

        if not merged.get('client_id'):
            raise MissingCredentialError(
                f"Missing {self.name.upper()}_CLIENT_ID env variables.",
                provider=self.name
            )

        merged['scope'] = tuple(as_scope_list(merged.get('scope')))
        merged['authorization_params'] = dict(merged.get('authorization_params', {}))
        return ProviderConfig(**merged)

    def compute_scopes(self, config: ProviderConfig) -> List[str]:
        """
        Get the scopes to request, adding the email scope when required.

        Args:
            config: Resolved provider configuration

        Returns:
            New list of scopes; the configuration is left untouched
        """
        scopes = list(config.scope)
        if config.email_required and self.email_scope and self.email_scope not in scopes:
            scopes.append(self.email_scope)
        return scopes

    def get_authorization_url(self, config: ProviderConfig, redirect_uri: str) -> str:
        """
        Generate the provider consent page URL.

        Extra authorization parameters are merged last and may replace the
        standard ones.

        Args:
            config: Resolved provider configuration
            redirect_uri: Callback URL for the OAuth flow

        Returns:
            Authorization URL for redirecting the user
        """
        params = {
            'response_type': 'code',
            'client_id': config.client_id,
            'redirect_uri': redirect_uri,
            'scope': ' '.join(self.compute_scopes(config))
        }

        overridden = set(params) & set(config.authorization_params)
        if overridden:
            self.logger.warning(
                f"Authorization params override required {self.name} parameters: {', '.join(sorted(overridden))}"
            )
        params.update(config.authorization_params)

        auth_url = add_params_to_uri(config.authorization_url, params)
        self.logger.debug(f"Generated {self.display_name} authorization URL with scopes: {params['scope']}")
        return auth_url

    def token_request_headers(self) -> Dict[str, str]:
        return {'Content-Type': 'application/x-www-form-urlencoded'}

    def token_request_data(self, config: ProviderConfig, code: str, redirect_uri: str) -> Dict[str, Any]:
        """
        Build the form body of the code-for-token request.

        The redirect URI is sent as its path component only; query and
        fragment are stripped.
        """
        return {
            'grant_type': 'authorization_code',
            'redirect_uri': urlparse(redirect_uri).path,
            'client_id': config.client_id,
            'client_secret': config.client_secret,
            'code': code
        }

    def exchange_code_for_tokens(self, config: ProviderConfig, code: str,
                                 redirect_uri: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Failures never raise: transport errors, error statuses and unreadable
        bodies come back as a payload with an ``error`` field so callers can
        inspect one shape.

        Args:
            config: Resolved provider configuration
            code: Authorization code from the callback
            redirect_uri: Redirect URI used for the authorization request

        Returns:
            Raw token payload from the provider, or an error payload
        """
        token_data = self.token_request_data(config, code, redirect_uri)

        self.logger.debug(f"Exchanging authorization code for {self.display_name} tokens")

        try:
            response = requests.post(
                config.token_url,
                data=token_data,
                headers=self.token_request_headers(),
                timeout=config.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except RequestException as e:
            self.logger.error(f"{self.display_name} token exchange request failed: {e}")
            payload = {'error': str(e)}
            body = self._error_body(e.response)
            if body:
                payload.update(body)
            return payload
        except ValueError as e:
            self.logger.error(f"Invalid token response from {self.display_name}: {e}")
            return {'error': f'Invalid token response: {e}'}

        if not isinstance(payload, dict):
            return {'error': 'Invalid token response', 'response': payload}

        return payload

    def _error_body(self, response: Optional[requests.Response]) -> Optional[Dict[str, Any]]:
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    @abstractmethod
    def get_user_info(self, config: ProviderConfig, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve the raw user profile using an access token.

        Args:
            config: Resolved provider configuration
            access_token: Access token from the token exchange

        Returns:
            Raw user profile, or None when the provider returned no usable user

        Raises:
            ProfileFetchError: If a required part of the profile is unavailable
        """
        pass

    @abstractmethod
    def normalize_user(self, user: Dict[str, Any]) -> OAuthUser:
        pass

    def normalize_tokens(self, tokens: Dict[str, Any]) -> OAuthToken:
        return OAuthToken(
            token=tokens.get('access_token'),
            refresh_token=tokens.get('refresh_token'),
            expires_in=tokens.get('expires_in'),
            approved_scopes=as_scope_list(tokens.get('scope'))
        )

    def get_provider_info(self) -> Dict[str, Any]:
        """
        Get provider information for API responses.

        Returns:
            Provider information dictionary
        """
        return {
            'name': self.name,
            'display_name': self.display_name,
            'type': 'oauth2',
            'login_url': f'/auth/{self.name}',
            'metadata': {
                'authorization_endpoint': self.authorize_url,
                'token_endpoint': self.token_url,
                'userinfo_endpoint': self.userinfo_url,
                'email_scope': self.email_scope
            }
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', display_name='{self.display_name}')"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
