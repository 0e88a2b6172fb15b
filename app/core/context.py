"""
Request-scoped identity passed explicitly into the gateway.

Built once per request at the HTTP boundary from the bearer token and the
tenant header; the core never looks identity up from global state.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    """
    Authenticated caller.

    Attributes:
        user_id: Identity-provider UID. The only representation of the
            caller used in audit records and logs.
        email: Optional email claim.
        token: Raw bearer token, forwarded to the permission service.
    """

    user_id: str
    email: str | None = None
    token: str | None = None

    @property
    def authorization_header(self) -> str | None:
        return f"Bearer {self.token}" if self.token else None


@dataclass(frozen=True)
class RequestContext:
    """Tenant and caller for a single gateway operation."""

    tenant_id: str | None
    caller: CallerIdentity
