"""
Read authorization against the remote permission service.

The permission service owns the policy; this module only turns its HTTP
answer into a yes/no decision, failing closed on anything unexpected.
"""

import logging
from functools import lru_cache
from urllib.parse import quote

import httpx

from app.config import get_settings
from app.core.context import RequestContext

logger = logging.getLogger(__name__)
settings = get_settings()

MEDIA_PATH_ENDPOINT = "/rest/v1/media/path/{key}"


class AuthorizationGateway:
    """
    Decides whether a caller may read a stored object.

    Decision table for the permission service response:

    - 2xx: allowed
    - 404: allowed (the service has no record of the object; the gateway's
      own existence check then reports not-found)
    - any other status: denied
    - timeout, refused connection, protocol error: denied

    One request per decision; no retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.client = client or httpx.Client(
            base_url=base_url or settings.PERMISSION_SERVICE_URL,
            timeout=timeout if timeout is not None else settings.PERMISSION_SERVICE_TIMEOUT,
        )

    def can_read(self, key: str, context: RequestContext) -> bool:
        """
        Ask the permission service whether the caller may view an object.

        Args:
            key: Object key being requested
            context: Tenant and caller of the current request

        Returns:
            True if the read may proceed
        """
        headers = {}
        authorization = context.caller.authorization_header
        if authorization:
            headers["Authorization"] = authorization
        if context.tenant_id:
            headers[settings.TENANT_HEADER] = context.tenant_id

        try:
            response = self.client.get(
                MEDIA_PATH_ENDPOINT.format(key=quote(key, safe="")),
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(f"Network error during permission check for {key}: {e}")
            return False

        if response.is_success or response.status_code == httpx.codes.NOT_FOUND:
            return True

        logger.warning(
            f"Permission check failed for path {key}. Status: {response.status_code} "
            f"(user={context.caller.user_id}, tenant={context.tenant_id})"
        )
        return False

    def close(self) -> None:
        self.client.close()


@lru_cache
def get_authorization_gateway() -> AuthorizationGateway:
    """Get the process-wide authorization gateway."""
    return AuthorizationGateway()
