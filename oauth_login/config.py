"""
Configuration module for the OAuth login application.

This module handles environment variable loading, OAuth client credentials
and Flask application settings. Provider credentials follow the
``<PROVIDER>_CLIENT_ID``, ``<PROVIDER>_CLIENT_SECRET`` and
``<PROVIDER>_REDIRECT_URL`` naming convention.
"""

import os
from typing import Dict, Any, Mapping, Optional
from dotenv import load_dotenv


DEFAULT_HTTP_TIMEOUT = 30


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


class Config:
    """Configuration class for the OAuth login application."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration from the environment.

        Args:
            environ: Variables to read instead of the process environment.
                When omitted, a ``.env`` file is loaded into ``os.environ``.

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        self.environ = environ

        self._load_flask_config()
        self._load_http_config()

    def _getenv(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self.environ.get(name)
        return value if value else default

    def _load_flask_config(self) -> None:
        """Load Flask application configuration settings."""
        secret_key = self._getenv('FLASK_SECRET_KEY')
        if not secret_key:
            raise ConfigurationError(
                "Missing required environment variable: FLASK_SECRET_KEY\n"
                "Please ensure it is set in your .env file or environment."
            )

        try:
            port = int(self._getenv('FLASK_PORT', '5000'))
        except ValueError:
            raise ConfigurationError(f"FLASK_PORT must be an integer, got: {self._getenv('FLASK_PORT')}")

        self.FLASK_CONFIG = {
            'SECRET_KEY': secret_key,
            'DEBUG': self._getenv('FLASK_DEBUG', 'False').lower() == 'true',
            'HOST': self._getenv('FLASK_HOST', '127.0.0.1'),
            'PORT': port,
            'SESSION_COOKIE_SECURE': self._getenv('SESSION_COOKIE_SECURE', 'False').lower() == 'true',
            'SESSION_COOKIE_HTTPONLY': True,
            'SESSION_COOKIE_SAMESITE': 'Lax'
        }

    def _load_http_config(self) -> None:
        raw_timeout = self._getenv('OAUTH_HTTP_TIMEOUT', str(DEFAULT_HTTP_TIMEOUT))
        try:
            self.HTTP_TIMEOUT = float(raw_timeout)
        except ValueError:
            raise ConfigurationError(f"OAUTH_HTTP_TIMEOUT must be a number, got: {raw_timeout}")

        if self.HTTP_TIMEOUT <= 0:
            raise ConfigurationError(f"OAUTH_HTTP_TIMEOUT must be positive, got: {raw_timeout}")

    def get_oauth_config(self, provider: str) -> Dict[str, Any]:
        """
        Get OAuth configuration for a provider from the environment.

        Unset variables are left out so they never override other sources.

        Args:
            provider: The OAuth provider name

        Returns:
            OAuth configuration dictionary
        """
        prefix = provider.upper()
        oauth_config = {
            'client_id': self._getenv(f'{prefix}_CLIENT_ID'),
            'client_secret': self._getenv(f'{prefix}_CLIENT_SECRET'),
            'redirect_url': self._getenv(f'{prefix}_REDIRECT_URL'),
            'timeout': self.HTTP_TIMEOUT
        }
        return {key: value for key, value in oauth_config.items() if value is not None}

    def get_flask_config(self) -> Dict[str, Any]:
        """
        Get Flask application configuration.

        Returns:
            Flask configuration dictionary
        """
        return self.FLASK_CONFIG.copy()

    def validate_oauth_credentials(self, provider: str) -> bool:
        """
        Check that both OAuth credentials are configured for a provider.

        Args:
            provider: The OAuth provider name

        Returns:
            True if credentials are present, False otherwise
        """
        config = self.get_oauth_config(provider)
        return bool(config.get('client_id') and config.get('client_secret'))


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, creating it on first use.

    Returns:
        The global Config instance

    Raises:
        ConfigurationError: If the environment is not configured
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
