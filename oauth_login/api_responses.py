"""
Standardized API response helpers for the OAuth login application.

This module keeps JSON responses and error payloads consistent across the
session endpoints and the error handlers.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from flask import jsonify


class APIResponse:
    """Standardized API response builder."""

    API_VERSION = "1.0"

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def success(data: Any = None, message: Optional[str] = None,
                metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Create a standardized success response.

        Args:
            data: Response data payload
            message: Optional success message
            metadata: Optional response metadata

        Returns:
            Standardized success response dictionary
        """
        response = {
            "success": True,
            "version": APIResponse.API_VERSION,
            "timestamp": APIResponse._timestamp(),
            "data": data
        }

        if message:
            response["message"] = message

        if metadata:
            response["metadata"] = metadata

        return response

    @staticmethod
    def error(code: str, message: str, details: Optional[Dict[str, Any]] = None,
              status_code: int = 400) -> Dict[str, Any]:
        """
        Create a standardized error response.

        Args:
            code: Error code identifier
            message: Human-readable error message
            details: Optional error details
            status_code: HTTP status code

        Returns:
            Standardized error response dictionary
        """
        response = {
            "success": False,
            "version": APIResponse.API_VERSION,
            "timestamp": APIResponse._timestamp(),
            "error": {
                "code": code,
                "message": message,
                "status_code": status_code
            }
        }

        if details:
            response["error"]["details"] = details

        return response


class ProviderResponseBuilder:
    """Response builder for provider listings."""

    @staticmethod
    def list_response(providers: List[Dict[str, Any]],
                      message: Optional[str] = None) -> Dict[str, Any]:
        return APIResponse.success(
            data={
                "providers": providers,
                "count": len(providers)
            },
            message=message or f"Retrieved {len(providers)} providers",
            metadata={"supported_oauth_version": "2.0"}
        )


class ErrorCodes:
    """Standardized error codes."""

    # Session
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"

    # OAuth flow, matching OAuthFlowError.error_code values
    OAUTH_ERROR = "OAUTH_ERROR"
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    TOKEN_EXCHANGE_FAILED = "TOKEN_EXCHANGE_FAILED"
    PROFILE_FETCH_FAILED = "PROFILE_FETCH_FAILED"

    # System
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def create_flask_response(response_data: Dict[str, Any], status_code: int = 200):
    """
    Create a Flask JSON response with the API version header.

    Args:
        response_data: Response data dictionary
        status_code: HTTP status code

    Returns:
        Flask JSON response
    """
    response = jsonify(response_data)
    response.status_code = status_code
    response.headers['X-API-Version'] = APIResponse.API_VERSION
    return response
