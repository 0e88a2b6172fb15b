"""
Storage abstraction layer for the media gateway.
Supports multiple backends: Local filesystem, S3/MinIO, Azure Blob.
"""

from app.storage.base import ObjectStorageBackend, StoredObject, DEFAULT_CONTENT_TYPE
from app.storage.local import LocalStorageBackend
from app.storage.factory import get_storage_backend
from app.storage.registry import ContainerHandle, ContainerRegistry, sanitize_tenant

__all__ = [
    "ObjectStorageBackend",
    "StoredObject",
    "DEFAULT_CONTENT_TYPE",
    "LocalStorageBackend",
    "get_storage_backend",
    "ContainerHandle",
    "ContainerRegistry",
    "sanitize_tenant",
]
