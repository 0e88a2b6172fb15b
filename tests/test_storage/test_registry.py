"""
Tests for tenant container resolution.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import ContainerExistsException, StorageException
from app.storage.base import ObjectStorageBackend
from app.storage.registry import ContainerRegistry, sanitize_tenant


@pytest.fixture
def backend() -> MagicMock:
    backend = MagicMock(spec=ObjectStorageBackend)
    backend.container_exists.return_value = False
    return backend


class TestSanitizeTenant:
    @pytest.mark.parametrize(
        "tenant, expected",
        [
            ("acme", "acme"),
            ("Acme Corp", "acme-corp"),
            ("acme_corp", "acme-corp"),
            ("Tenant.01/eu", "tenant-01-eu"),
            ("already-fine-9", "already-fine-9"),
        ],
    )
    def test_sanitize(self, tenant, expected):
        assert sanitize_tenant(tenant) == expected

    def test_missing_tenant_uses_default(self):
        assert sanitize_tenant(None, "public") == "public"
        assert sanitize_tenant("", "public") == "public"


class TestContainerRegistry:
    def test_container_name(self, backend):
        registry = ContainerRegistry(backend, default_tenant="public", prefix="media-")

        assert registry.container_name("Acme Corp") == "media-acme-corp"
        assert registry.container_name(None) == "media-public"

    def test_creates_missing_container_once(self, backend):
        registry = ContainerRegistry(backend, default_tenant="public", prefix="media-")

        first = registry.resolve("acme")
        second = registry.resolve("acme")

        assert first.name == second.name == "media-acme"
        backend.container_exists.assert_called_once_with("media-acme")
        backend.create_container.assert_called_once_with("media-acme")
        assert registry.is_verified("media-acme")

    def test_existing_container_is_not_created(self, backend):
        backend.container_exists.return_value = True
        registry = ContainerRegistry(backend, default_tenant="public", prefix="media-")

        registry.resolve("acme")

        backend.create_container.assert_not_called()

    def test_colliding_tenants_share_container(self, backend):
        registry = ContainerRegistry(backend, default_tenant="public", prefix="media-")

        assert registry.resolve("Acme Corp").name == registry.resolve("acme_corp").name
        backend.create_container.assert_called_once()

    def test_creation_conflict_is_success(self, backend):
        backend.create_container.side_effect = ContainerExistsException("exists")
        registry = ContainerRegistry(backend, default_tenant="public", prefix="media-")

        assert registry.resolve("acme").name == "media-acme"
        assert registry.is_verified("media-acme")

    def test_backend_failure_is_not_cached(self, backend):
        backend.container_exists.side_effect = [StorageException("unreachable"), True]
        registry = ContainerRegistry(backend, default_tenant="public", prefix="media-")

        with pytest.raises(StorageException):
            registry.resolve("acme")
        assert not registry.is_verified("media-acme")

        registry.resolve("acme")
        assert registry.is_verified("media-acme")

    def test_concurrent_first_use(self, storage):
        """Many threads resolving a new tenant at once all succeed."""
        registry = ContainerRegistry(storage, default_tenant="public", prefix="media-")
        barrier = threading.Barrier(16)

        def resolve():
            barrier.wait()
            return registry.resolve("race").name

        with ThreadPoolExecutor(max_workers=16) as pool:
            names = list(pool.map(lambda _: resolve(), range(16)))

        assert set(names) == {"media-race"}
        assert storage.container_exists("media-race")
