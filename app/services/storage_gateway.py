"""
Storage gateway - upload, download and delete of tenant media objects.

Composes the container registry, the metadata extractor, the authorization
gateway and the audit publisher. Every backend failure is a single attempt
and is reported as one of the gateway's own exception kinds; backend detail
stays in the logs.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import BinaryIO
from uuid import uuid4

from app.auth.permissions import AuthorizationGateway, get_authorization_gateway
from app.core.context import RequestContext
from app.core.exceptions import (
    MediaAccessDeniedException,
    MediaDeleteException,
    MediaDownloadException,
    MediaNotFoundException,
    MediaUploadException,
    ObjectNotFoundException,
    StorageException,
    ValidationException,
)
from app.schemas.audit import AuditAction, AuditRecord
from app.schemas.media import MediaAttributes
from app.services.audit import AuditPublisher, get_audit_publisher
from app.services.metadata_extractor import MetadataExtractor, get_metadata_extractor
from app.storage.base import DEFAULT_CONTENT_TYPE
from app.storage.factory import get_storage_backend
from app.storage.registry import ContainerRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    key: str
    attributes: MediaAttributes


@dataclass(frozen=True)
class MediaDownload:
    data: bytes
    content_type: str


def file_extension(filename: str | None) -> str:
    """
    Extension of a client filename, without the dot.

    ``"trip.final.JPG"`` -> ``"JPG"``; no extension, or one that is not
    purely alphanumeric, gives ``""``.
    """
    if not filename:
        return ""
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    _, dot, extension = basename.rpartition(".")
    if not dot or not extension.isascii() or not extension.isalnum():
        return ""
    return extension


def generate_object_key(filename: str | None) -> str:
    """A fresh UUID4 key, suffixed with the original extension when there is one."""
    extension = file_extension(filename)
    key = str(uuid4())
    return f"{key}.{extension}" if extension else key


def _read_source(source: bytes | BinaryIO) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    return source.read()


class StorageGateway:
    """Service class for media object operations."""

    def __init__(
        self,
        registry: ContainerRegistry,
        authorization: AuthorizationGateway,
        audit: AuditPublisher,
        extractor: MetadataExtractor | None = None,
    ):
        self.registry = registry
        self.backend = registry.backend
        self.authorization = authorization
        self.audit = audit
        self.extractor = extractor or get_metadata_extractor()

    def upload(
        self,
        source: bytes | BinaryIO,
        content_type: str | None,
        filename: str | None,
        context: RequestContext,
    ) -> UploadResult:
        """
        Store a new media object under a freshly generated key.

        Args:
            source: Object bytes, or a binary stream to read them from
            content_type: Declared MIME type, stored as the object's content type
            filename: Original client filename (only its extension is kept)
            context: Tenant and caller of the request

        Returns:
            The new key and the attributes extracted from the bytes

        Raises:
            ValidationException: If the upload is empty
            MediaUploadException: If reading the input or writing to the backend fails
        """
        tenant = context.tenant_id
        key = generate_object_key(filename)
        content_type = content_type or DEFAULT_CONTENT_TYPE

        try:
            data = _read_source(source)
        except OSError as e:
            logger.error(f"Network/IO error while reading upload for object {key}", exc_info=True)
            raise MediaUploadException(key, tenant) from e

        if not data:
            raise ValidationException("Uploaded file is empty", details={"filename": filename})

        try:
            container = self.registry.resolve(tenant)
            self.backend.put_object(container.name, key, data, content_type)
        except StorageException as e:
            logger.error(f"Storage error during upload for object {key}", exc_info=True)
            raise MediaUploadException(key, tenant) from e

        logger.info(f"Successfully uploaded file: {key} with size {len(data)} to {container.name}")

        attributes = self.extractor.extract(data, content_type)

        self.audit.publish(
            AuditRecord.for_object(AuditAction.UPLOADED, context.caller.user_id, key),
            tenant,
        )

        return UploadResult(key=key, attributes=attributes)

    def download(self, key: str, context: RequestContext) -> MediaDownload:
        """
        Read a media object after the permission service allows it.

        Authorization is decided before the backend is touched, so a denied
        caller learns nothing about whether the object exists.

        Raises:
            MediaAccessDeniedException: If the read is not authorized
            MediaNotFoundException: If the object does not exist
            MediaDownloadException: If the backend read fails
        """
        tenant = context.tenant_id

        if not self.authorization.can_read(key, context):
            logger.warning(f"User {context.caller.user_id} not allowed to view media file {key}")
            raise MediaAccessDeniedException(key, tenant)

        try:
            container = self.registry.resolve(tenant)

            if not self.backend.object_exists(container.name, key):
                logger.warning(f"File not found: Download requested for non-existent object '{key}'")
                raise MediaNotFoundException(key, tenant)

            stored = self.backend.get_object(container.name, key)

        except ObjectNotFoundException as e:
            logger.warning(f"File not found: Object '{key}' disappeared before it could be read")
            raise MediaNotFoundException(key, tenant) from e
        except StorageException as e:
            logger.error(f"Storage error during download for object {key}", exc_info=True)
            raise MediaDownloadException(key, tenant) from e

        return MediaDownload(data=stored.data, content_type=stored.content_type)

    def delete(self, key: str, context: RequestContext) -> bool:
        """
        Delete a media object if it exists.

        Deleting a missing object is a successful no-op and publishes no
        audit event.

        Returns:
            True if an object was removed

        Raises:
            MediaDeleteException: If the backend delete fails
        """
        tenant = context.tenant_id

        try:
            container = self.registry.resolve(tenant)
            deleted = self.backend.delete_object_if_exists(container.name, key)
        except StorageException as e:
            logger.error(f"Storage error during deletion for object {key}", exc_info=True)
            raise MediaDeleteException(key, tenant) from e

        if not deleted:
            logger.warning(f"Delete requested for non-existent file '{key}'")
            return False

        logger.info(f"Successfully deleted file: {key}")
        self.audit.publish(
            AuditRecord.for_object(AuditAction.DELETED, context.caller.user_id, key),
            tenant,
        )
        return True


@lru_cache
def get_storage_gateway() -> StorageGateway:
    """Get the process-wide storage gateway (owns the container cache)."""
    return StorageGateway(
        registry=ContainerRegistry(get_storage_backend()),
        authorization=get_authorization_gateway(),
        audit=get_audit_publisher(),
    )
