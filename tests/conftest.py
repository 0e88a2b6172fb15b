"""
Pytest configuration and fixtures for media gateway tests.
"""

import io
from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from PIL import Image

from app.auth.dependencies import get_current_user
from app.auth.permissions import AuthorizationGateway
from app.core.context import CallerIdentity, RequestContext
from app.main import app
from app.schemas.audit import AuditRecord
from app.services.audit import AuditPublisher, AuditSink
from app.services.metadata_extractor import MetadataExtractor
from app.services.storage_gateway import StorageGateway, get_storage_gateway
from app.storage import ContainerRegistry, LocalStorageBackend


class RecordingAuditSink(AuditSink):
    """Audit sink that keeps every record it is given."""

    def __init__(self) -> None:
        self.sent: list[tuple[AuditRecord, dict[str, str]]] = []

    def send(self, record: AuditRecord, headers: dict[str, str]) -> None:
        self.sent.append((record, headers))

    @property
    def actions(self) -> list[str]:
        return [record.action.value for record, _ in self.sent]


@pytest.fixture
def caller() -> CallerIdentity:
    """Authenticated test caller."""
    return CallerIdentity(user_id="test-user-001", email="test@example.com", token="test-token")


@pytest.fixture
def context(caller: CallerIdentity) -> RequestContext:
    """Request context for the ``acme`` tenant."""
    return RequestContext(tenant_id="acme", caller=caller)


@pytest.fixture
def storage(tmp_path) -> LocalStorageBackend:
    """Create a test storage backend."""
    return LocalStorageBackend(base_path=str(tmp_path / "storage"))


@pytest.fixture
def registry(storage: LocalStorageBackend) -> ContainerRegistry:
    return ContainerRegistry(storage, default_tenant="public", prefix="media-")


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def authorization() -> MagicMock:
    """Permission service double that allows every read."""
    gateway = MagicMock(spec=AuthorizationGateway)
    gateway.can_read.return_value = True
    return gateway


@pytest.fixture
def gateway(
    registry: ContainerRegistry,
    authorization: MagicMock,
    audit_sink: RecordingAuditSink,
) -> StorageGateway:
    """Storage gateway over the local backend with test doubles."""
    return StorageGateway(
        registry=registry,
        authorization=authorization,
        audit=AuditPublisher(audit_sink),
        extractor=MetadataExtractor(),
    )


@pytest_asyncio.fixture(scope="function")
async def client(gateway: StorageGateway, caller: CallerIdentity) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with an authenticated caller."""
    app.dependency_overrides[get_storage_gateway] = lambda: gateway
    app.dependency_overrides[get_current_user] = lambda: caller

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def anonymous_client(gateway: StorageGateway) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client without authentication overrides."""
    app.dependency_overrides[get_storage_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _render_image(image_format: str, size: tuple[int, int] = (64, 48), **save_kwargs) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 40, 40)).save(buffer, format=image_format, **save_kwargs)
    return buffer.getvalue()


@pytest.fixture
def make_image():
    """Factory rendering a solid-colour image in the given Pillow format."""
    return _render_image


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _render_image("JPEG", (64, 48))


@pytest.fixture
def png_bytes() -> bytes:
    return _render_image("PNG", (32, 16))
