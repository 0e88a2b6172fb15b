"""
Authentication and authorization module for the media gateway.
Token validation for callers and read authorization via the permission service.
"""

from app.auth.jwt import validate_token, extract_caller, fetch_jwks
from app.auth.permissions import AuthorizationGateway, get_authorization_gateway
from app.auth.dependencies import (
    get_current_user,
    get_request_context,
    CurrentUser,
    CurrentContext,
)

__all__ = [
    # JWT functions
    "validate_token",
    "extract_caller",
    "fetch_jwks",
    # Read authorization
    "AuthorizationGateway",
    "get_authorization_gateway",
    # Dependencies
    "get_current_user",
    "get_request_context",
    # Type aliases
    "CurrentUser",
    "CurrentContext",
]
