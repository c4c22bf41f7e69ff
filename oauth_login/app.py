"""
Flask application for the OAuth login playground.

This module wires the GitHub and Twitch login handlers into a Flask
application with session storage, logging and JSON error handling.
"""

from flask import Flask, redirect, request
import logging
import sys
import time
from typing import Tuple, Optional
from werkzeug.exceptions import HTTPException

from .config import Config, get_config
from .api_responses import APIResponse, ProviderResponseBuilder, ErrorCodes, create_flask_response
from .providers import OAuthFlowError, OAuthToken, OAuthUser, ProviderManager
from .providers.base_provider import redact_tokens
from .session import clear_user_session, get_user_session, require_user_session, set_user_session


def create_app(config: Optional[Config] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Application configuration; defaults to the global one

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    config = config or get_config()
    flask_config = config.get_flask_config()
    app.config.update(flask_config)

    debug = flask_config.get('DEBUG', False)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Outbound HTTP libraries are noisy at INFO
    logging.getLogger('authlib').setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger('requests').setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    provider_manager = ProviderManager(config=config)
    app.provider_manager = provider_manager

    register_error_handlers(app)
    register_core_routes(app)
    register_login_routes(app, provider_manager)

    app.logger.info("Flask application initialized successfully")
    return app


def register_login_routes(app: Flask, provider_manager: ProviderManager) -> None:
    """
    Register the provider login routes.

    Args:
        app: Flask application instance
        provider_manager: Registry used to build the login handlers
    """

    def github_success(req, user: OAuthUser, tokens: OAuthToken):
        set_user_session({
            'user': {
                'github': user.to_dict()
            }
        })
        return redirect('/')

    def twitch_success(req, user: OAuthUser, tokens: OAuthToken):
        set_user_session({
            'user': {
                'twitch': user.nickname
            },
            'logged_in_at': int(time.time() * 1000)
        })
        return redirect('/')

    app.add_url_rule(
        '/auth/github',
        'github_login',
        provider_manager.create_handler('github', on_success=github_success),
        methods=['GET']
    )
    app.add_url_rule(
        '/auth/twitch',
        'twitch_login',
        provider_manager.create_handler('twitch', config={'email_required': True}, on_success=twitch_success),
        methods=['GET']
    )


def register_error_handlers(app: Flask) -> None:
    """
    Register JSON error handlers for the Flask application.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(OAuthFlowError)
    def handle_oauth_error(error: OAuthFlowError) -> Tuple[object, int]:
        """Render login flow failures with the status they carry."""
        app.logger.warning(f"OAuth flow error: {error} - URL: {request.base_url}")
        if error.data is not None:
            app.logger.debug(f"OAuth flow error payload: {redact_tokens(error.data)}")
        payload = error.to_dict()
        response_data = APIResponse.error(
            payload['code'],
            payload['message'],
            details=payload['details'],
            status_code=error.status_code
        )
        return create_flask_response(response_data, error.status_code), error.status_code

    @app.errorhandler(401)
    def unauthorized_error(error) -> Tuple[object, int]:
        response_data = APIResponse.error(ErrorCodes.NOT_AUTHENTICATED, 'Not logged in', status_code=401)
        return create_flask_response(response_data, 401), 401

    @app.errorhandler(404)
    def not_found_error(error) -> Tuple[object, int]:
        app.logger.warning(f"404 error: {request.url}")
        response_data = APIResponse.error(ErrorCodes.NOT_FOUND, 'The requested resource was not found', status_code=404)
        return create_flask_response(response_data, 404), 404

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle unexpected exceptions with logging."""
        if isinstance(error, HTTPException):
            return error

        app.logger.error(f"Unexpected error: {error} - URL: {request.url} - Method: {request.method}", exc_info=True)
        response_data = APIResponse.error(ErrorCodes.INTERNAL_ERROR, 'An unexpected error occurred', status_code=500)
        return create_flask_response(response_data, 500), 500


def register_core_routes(app: Flask) -> None:
    """
    Register session and provider routes.

    Args:
        app: Flask application instance
    """

    @app.route('/')
    def index():
        """Show the current session, empty when nobody is logged in."""
        return create_flask_response(APIResponse.success(data=get_user_session()))

    @app.route('/api/session', methods=['GET'])
    def get_session():
        return create_flask_response(APIResponse.success(data=require_user_session()))

    @app.route('/api/session', methods=['DELETE'])
    def delete_session():
        cleared = clear_user_session()
        return create_flask_response(APIResponse.success(
            data={'cleared': cleared},
            message='Logged out' if cleared else 'No active session'
        ))

    @app.route('/api/providers')
    def list_providers():
        providers_info = app.provider_manager.get_provider_info()
        return create_flask_response(ProviderResponseBuilder.list_response(providers_info))
