"""
Authentication dependencies for FastAPI.
Builds the caller identity and request context for authenticated endpoints.
"""

from typing import Annotated

from fastapi import Depends, Request

from app.config import get_settings
from app.core.context import CallerIdentity, RequestContext
from app.core.exceptions import UnauthorizedException
from app.auth.jwt import extract_caller, validate_token

settings = get_settings()


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise UnauthorizedException("Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedException("Invalid authorization header format")

    return parts[1]


async def get_current_user(request: Request) -> CallerIdentity:
    """
    Dependency to get the current authenticated caller.

    In development mode (DEV_MODE=true), returns a fixed development
    identity. Otherwise validates the JWT from the Authorization header.

    Raises:
        UnauthorizedException: If authentication fails
    """
    authorization = request.headers.get("authorization")

    if settings.DEV_MODE:
        caller = CallerIdentity(
            user_id=settings.DEV_USER_ID,
            email=settings.DEV_USER_EMAIL,
            token=authorization.split()[-1] if authorization else None,
        )
        request.state.user = caller
        return caller

    token = _bearer_token(authorization)
    payload = await validate_token(token)
    caller = extract_caller(payload, token)

    request.state.user = caller
    return caller


async def get_request_context(
    request: Request,
    caller: CallerIdentity = Depends(get_current_user),
) -> RequestContext:
    """
    Dependency combining the caller with the tenant named in the
    tenant header. A missing header selects the default tenant.
    """
    tenant_id = request.headers.get(settings.TENANT_HEADER) or None
    return RequestContext(tenant_id=tenant_id, caller=caller)


# Type aliases for dependency injection
CurrentUser = Annotated[CallerIdentity, Depends(get_current_user)]
CurrentContext = Annotated[RequestContext, Depends(get_request_context)]
