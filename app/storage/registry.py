"""
Tenant-to-container resolution.

Every tenant owns exactly one container, named ``CONTAINER_PREFIX`` plus the
sanitized tenant id. Containers are created lazily on first reference and
remembered for the lifetime of the process so the backend is only asked
about each container once.
"""

import logging
import re
import threading
from dataclasses import dataclass

from app.config import get_settings
from app.core.exceptions import ContainerExistsException
from app.storage.base import ObjectStorageBackend

logger = logging.getLogger(__name__)
settings = get_settings()

_INVALID_TENANT_CHARS = re.compile(r"[^a-z0-9-]")


def sanitize_tenant(tenant_id: str | None, default: str | None = None) -> str:
    """
    Reduce a tenant id to lowercase letters, digits and hyphens.

    Every other character becomes a hyphen, so distinct raw ids such as
    ``"Acme Corp"`` and ``"acme_corp"`` map to the same value.
    Empty or missing ids map to the default tenant.
    """
    if not tenant_id:
        tenant_id = default or settings.DEFAULT_TENANT
    return _INVALID_TENANT_CHARS.sub("-", tenant_id.lower())


@dataclass(frozen=True)
class ContainerHandle:
    """A tenant's storage namespace."""

    name: str
    tenant_id: str | None = None


class ContainerRegistry:
    """
    Resolves tenants to containers, creating missing containers on demand.

    The set of verified container names is shared by all request threads
    and guarded by a lock. Backend calls are made outside the lock; two
    threads racing to create the same container both succeed because the
    backend's "already exists" answer is treated as success.
    """

    def __init__(
        self,
        backend: ObjectStorageBackend,
        default_tenant: str | None = None,
        prefix: str | None = None,
    ):
        self.backend = backend
        self.default_tenant = default_tenant or settings.DEFAULT_TENANT
        self.prefix = settings.CONTAINER_PREFIX if prefix is None else prefix
        self._verified: set[str] = set()
        self._lock = threading.Lock()

    def container_name(self, tenant_id: str | None) -> str:
        """Derive the container name for a tenant without touching the backend."""
        return f"{self.prefix}{sanitize_tenant(tenant_id, self.default_tenant)}"

    def is_verified(self, name: str) -> bool:
        with self._lock:
            return name in self._verified

    def resolve(self, tenant_id: str | None) -> ContainerHandle:
        """
        Resolve a tenant to its container, creating it if needed.

        Raises:
            StorageException: If the backend cannot be reached
        """
        name = self.container_name(tenant_id)
        handle = ContainerHandle(name=name, tenant_id=tenant_id)

        if self.is_verified(name):
            return handle

        if not self.backend.container_exists(name):
            logger.info("New tenant detected: creating container %s", name)
            try:
                self.backend.create_container(name)
            except ContainerExistsException:
                logger.debug("Container %s was created concurrently", name)

        with self._lock:
            self._verified.add(name)

        return handle
