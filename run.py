#!/usr/bin/env python3
"""
Startup script for the OAuth login playground.

This script initializes and runs the Flask development server with
configuration validation.
"""

import sys
from oauth_login.app import create_app
from oauth_login.config import ConfigurationError


def main():
    """Main entry point for the application."""
    try:
        app = create_app()

        host = app.config.get('HOST', '127.0.0.1')
        port = app.config.get('PORT', 5000)
        debug = app.config.get('DEBUG', False)

        print(f"Starting OAuth login playground at http://{host}:{port}")
        print(f"Debug mode: {'ON' if debug else 'OFF'}")
        print("Log in via /auth/github or /auth/twitch")

        app.run(host=host, port=port, debug=debug, use_reloader=debug)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        print("Copy .env.example to .env and fill in your OAuth credentials.", file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == '__main__':
    main()
