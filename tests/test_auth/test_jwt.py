"""
Tests for token validation and the identity dependencies.
"""

import base64
import time

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt
from starlette.requests import Request

from app.auth import dependencies
from app.auth import jwt as jwt_module
from app.auth.jwt import extract_caller, get_rsa_key, validate_token
from app.core.context import CallerIdentity
from app.core.exceptions import UnauthorizedException

KID = "test-key"


def _b64url_uint(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@pytest.fixture(scope="module")
def rsa_keys():
    """RSA private key in PEM form plus the matching JWKS."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    numbers = private_key.public_key().public_numbers()
    jwks = {
        "keys": [
            {
                "kty": "RSA",
                "kid": KID,
                "use": "sig",
                "alg": "RS256",
                "n": _b64url_uint(numbers.n),
                "e": _b64url_uint(numbers.e),
            }
        ]
    }
    return pem, jwks


@pytest.fixture
def signed_token(rsa_keys, monkeypatch):
    """Factory for RS256 tokens verifiable against the patched JWKS."""
    pem, jwks = rsa_keys

    async def fake_fetch_jwks():
        return jwks

    monkeypatch.setattr(jwt_module, "fetch_jwks", fake_fetch_jwks)

    def sign(claims: dict, kid: str = KID) -> str:
        return jwt.encode(claims, pem, algorithm="RS256", headers={"kid": kid})

    return sign


def _request(headers: dict[str, str]) -> Request:
    return Request({
        "type": "http",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    })


class TestValidateToken:
    """Tests for RS256 validation against the JWKS."""

    @pytest.mark.asyncio
    async def test_valid_token(self, signed_token):
        token = signed_token({"sub": "uid-123", "exp": int(time.time()) + 300})

        claims = await validate_token(token)

        assert claims["sub"] == "uid-123"

    @pytest.mark.asyncio
    async def test_expired_token(self, signed_token):
        token = signed_token({"sub": "uid-123", "exp": int(time.time()) - 300})

        with pytest.raises(UnauthorizedException, match="expired"):
            await validate_token(token)

    @pytest.mark.asyncio
    async def test_unknown_key_id(self, signed_token):
        token = signed_token({"sub": "uid-123", "exp": int(time.time()) + 300}, kid="other")

        with pytest.raises(UnauthorizedException, match="appropriate key"):
            await validate_token(token)

    @pytest.mark.asyncio
    async def test_garbage_token(self, signed_token):
        with pytest.raises(UnauthorizedException):
            await validate_token("not-a-jwt")


class TestClaims:
    def test_extract_caller_from_sub(self):
        caller = extract_caller({"sub": "uid-1", "email": "a@example.com"}, "tok")

        assert caller == CallerIdentity(user_id="uid-1", email="a@example.com", token="tok")

    def test_extract_caller_from_user_id(self):
        assert extract_caller({"user_id": "uid-2"}).user_id == "uid-2"

    def test_missing_subject(self):
        with pytest.raises(UnauthorizedException):
            extract_caller({"email": "a@example.com"})

    def test_get_rsa_key(self, rsa_keys):
        _, jwks = rsa_keys

        assert get_rsa_key(jwks, KID)["kid"] == KID
        assert get_rsa_key(jwks, "missing") is None


class TestDependencies:
    """Tests for get_current_user and get_request_context."""

    @pytest.mark.asyncio
    async def test_missing_header(self):
        with pytest.raises(UnauthorizedException, match="required"):
            await dependencies.get_current_user(_request({}))

    @pytest.mark.asyncio
    async def test_malformed_header(self):
        with pytest.raises(UnauthorizedException, match="format"):
            await dependencies.get_current_user(_request({"Authorization": "Token abc"}))

    @pytest.mark.asyncio
    async def test_bearer_token(self, signed_token):
        token = signed_token({"sub": "uid-9", "exp": int(time.time()) + 300})

        caller = await dependencies.get_current_user(_request({"Authorization": f"Bearer {token}"}))

        assert caller.user_id == "uid-9"
        assert caller.token == token
        assert caller.authorization_header == f"Bearer {token}"

    @pytest.mark.asyncio
    async def test_dev_mode(self, monkeypatch):
        monkeypatch.setattr(dependencies.settings, "DEV_MODE", True)

        caller = await dependencies.get_current_user(_request({}))

        assert caller.user_id == dependencies.settings.DEV_USER_ID
        assert caller.token is None

    @pytest.mark.asyncio
    async def test_request_context_reads_tenant_header(self):
        caller = CallerIdentity(user_id="uid-1")

        context = await dependencies.get_request_context(_request({"X-Tenant-Id": "acme"}), caller)

        assert context.tenant_id == "acme"
        assert context.caller is caller

    @pytest.mark.asyncio
    async def test_request_context_without_tenant(self):
        context = await dependencies.get_request_context(_request({}), CallerIdentity(user_id="uid-1"))

        assert context.tenant_id is None
