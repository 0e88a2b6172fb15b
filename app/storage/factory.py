"""
Storage backend factory.
Provides configuration-driven backend selection.
"""

from functools import lru_cache

from app.config import get_settings
from app.storage.base import ObjectStorageBackend

settings = get_settings()


@lru_cache
def get_storage_backend() -> ObjectStorageBackend:
    """
    Get the configured storage backend.

    Uses LRU cache to ensure only one instance is created.
    Backend selection is based on STORAGE_BACKEND setting.

    Returns:
        Configured ObjectStorageBackend instance

    Raises:
        ValueError: If unknown storage backend is configured
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "local":
        from app.storage.local import LocalStorageBackend
        return LocalStorageBackend()
    elif backend == "s3":
        from app.storage.s3 import S3StorageBackend
        return S3StorageBackend()
    elif backend == "azure":
        from app.storage.azure import AzureStorageBackend
        return AzureStorageBackend()
    else:
        raise ValueError(f"Unknown storage backend: {backend}")
