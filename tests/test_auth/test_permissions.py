"""
Tests for read authorization against the permission service.
"""

import httpx
import pytest

from app.auth.permissions import AuthorizationGateway
from app.core.context import CallerIdentity, RequestContext


def _gateway(handler) -> AuthorizationGateway:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://permissions.test")
    return AuthorizationGateway(client=client)


def _respond(status_code: int):
    return lambda request: httpx.Response(status_code)


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(
        tenant_id="acme",
        caller=CallerIdentity(user_id="user-1", token="abc.def.ghi"),
    )


class TestDecisions:
    """Permission service status codes mapped to decisions."""

    def test_ok_allows(self, ctx):
        assert _gateway(_respond(200)).can_read("a.jpg", ctx) is True

    def test_other_success_allows(self, ctx):
        assert _gateway(_respond(204)).can_read("a.jpg", ctx) is True

    def test_not_found_allows(self, ctx):
        """404 means the service has no record; the read proceeds to storage."""
        assert _gateway(_respond(404)).can_read("a.jpg", ctx) is True

    @pytest.mark.parametrize("status_code", [401, 403, 500, 503])
    def test_other_statuses_deny(self, ctx, status_code):
        assert _gateway(_respond(status_code)).can_read("a.jpg", ctx) is False

    def test_connection_error_denies(self, ctx):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert _gateway(handler).can_read("a.jpg", ctx) is False

    def test_timeout_denies(self, ctx):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _gateway(handler).can_read("a.jpg", ctx) is False


class TestRequest:
    """Shape of the request sent to the permission service."""

    def test_forwards_token_and_tenant(self, ctx):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        _gateway(handler).can_read("abc-123.jpg", ctx)

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/media/path/abc-123.jpg"
        assert request.headers["Authorization"] == "Bearer abc.def.ghi"
        assert request.headers["X-Tenant-Id"] == "acme"

    def test_omits_missing_token_and_tenant(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        anonymous = RequestContext(tenant_id=None, caller=CallerIdentity(user_id="user-1"))
        _gateway(handler).can_read("a.jpg", anonymous)

        assert "Authorization" not in seen[0].headers
        assert "X-Tenant-Id" not in seen[0].headers

    def test_key_is_escaped(self, ctx):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200)

        _gateway(handler).can_read("a b?.jpg", ctx)

        assert seen[0].url.raw_path == b"/rest/v1/media/path/a%20b%3F.jpg"

    def test_one_request_per_decision(self, ctx):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        _gateway(handler).can_read("a.jpg", ctx)

        assert len(calls) == 1


class TestLogging:
    def test_denial_is_logged(self, ctx, caplog):
        _gateway(_respond(403)).can_read("a.jpg", ctx)

        assert "Permission check failed for path a.jpg. Status: 403 (user=user-1, tenant=acme)" in caplog.text

    def test_transport_error_is_logged(self, ctx, caplog):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        _gateway(handler).can_read("a.jpg", ctx)

        assert "Network error during permission check for a.jpg" in caplog.text
