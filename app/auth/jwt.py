"""
JWT token validation with JWKS caching.

Callers present identity-provider ID tokens (Firebase secure-token JWTs by
default). Tokens are verified against the provider's published JWKS.
"""

import time
from typing import Any

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from app.config import get_settings
from app.core.context import CallerIdentity
from app.core.exceptions import UnauthorizedException

settings = get_settings()


# JWKS cache
_jwks_cache: dict[str, Any] = {}
_jwks_cache_time: float = 0


async def fetch_jwks() -> dict[str, Any]:
    """
    Fetch the JWKS (JSON Web Key Set) of the identity provider.
    Implements caching to reduce network calls.

    Returns:
        JWKS dictionary with public keys

    Raises:
        UnauthorizedException: If JWKS cannot be fetched
    """
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()
    if _jwks_cache and (current_time - _jwks_cache_time) < settings.JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                settings.AUTH_JWKS_URL,
                timeout=10.0,
            )
            response.raise_for_status()

            _jwks_cache = response.json()
            _jwks_cache_time = current_time

            return _jwks_cache

    except httpx.HTTPError as e:
        # If we have a cached version, use it even if expired
        if _jwks_cache:
            return _jwks_cache
        raise UnauthorizedException(f"Failed to fetch JWKS: {str(e)}")


def get_rsa_key(jwks: dict[str, Any], kid: str) -> dict[str, Any] | None:
    """
    Get RSA public key from JWKS by key ID.

    Args:
        jwks: JWKS dictionary
        kid: Key ID from JWT header

    Returns:
        RSA key dictionary or None if not found
    """
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return {
                "kty": key.get("kty"),
                "kid": key.get("kid"),
                "use": key.get("use"),
                "n": key.get("n"),
                "e": key.get("e"),
            }
    return None


async def validate_token(token: str) -> dict[str, Any]:
    """
    Validate an identity-provider JWT.

    Performs:
    1. Signature verification using JWKS public key
    2. Expiration check
    3. Issuer verification (when AUTH_ISSUER is set)
    4. Audience verification (when AUTH_AUDIENCE is set)

    Args:
        token: JWT token string

    Returns:
        Decoded token claims

    Raises:
        UnauthorizedException: If token is invalid
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
        kid = unverified_header.get("kid")

        if not kid:
            raise UnauthorizedException("Token missing key ID")

        jwks = await fetch_jwks()
        rsa_key = get_rsa_key(jwks, kid)

        if not rsa_key:
            raise UnauthorizedException("Unable to find appropriate key")

        return jwt.decode(
            token,
            rsa_key,
            algorithms=["RS256"],
            audience=settings.AUTH_AUDIENCE,
            issuer=settings.AUTH_ISSUER,
            options={"verify_aud": settings.AUTH_AUDIENCE is not None},
        )

    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired")
    except JWTError as e:
        raise UnauthorizedException(f"Invalid token: {str(e)}")


def extract_caller(payload: dict[str, Any], token: str | None = None) -> CallerIdentity:
    """
    Build the caller identity from validated JWT claims.

    The UID comes from ``sub`` (Firebase also mirrors it as ``user_id``).

    Raises:
        UnauthorizedException: If the token carries no subject
    """
    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        raise UnauthorizedException("Token missing subject")

    return CallerIdentity(
        user_id=user_id,
        email=payload.get("email"),
        token=token,
    )
