"""
Local filesystem storage backend.
Stores objects on the local filesystem for development and simple deployments.

Layout::

    <base_path>/<container>/<key>                   object bytes
    <base_path>/<container>/.content-types/<key>    stored content type
"""

from pathlib import Path

from app.config import get_settings
from app.core.exceptions import (
    ContainerExistsException,
    ObjectNotFoundException,
    StorageException,
)
from app.storage.base import DEFAULT_CONTENT_TYPE, ObjectStorageBackend, StoredObject

settings = get_settings()

_CONTENT_TYPE_DIR = ".content-types"


def _is_valid_key(key: str) -> bool:
    """Keys are single path segments that cannot name the metadata directory."""
    return bool(key) and not any(c in key for c in "/\\\x00") and not key.startswith(".")


class LocalStorageBackend(ObjectStorageBackend):
    """
    Local filesystem storage implementation.

    Containers are directories under the configured LOCAL_STORAGE_PATH.
    Suitable for development and small-scale deployments.
    """

    name = "local"

    def __init__(self, base_path: str | None = None):
        """
        Initialize local storage backend.

        Args:
            base_path: Base directory for storage. Defaults to settings.LOCAL_STORAGE_PATH
        """
        self.base_path = Path(base_path or settings.LOCAL_STORAGE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _container_path(self, container: str) -> Path:
        if not container or "/" in container or "\\" in container or container.startswith("."):
            raise StorageException(
                message=f"Invalid container name: {container}",
                details={"container": container},
            )
        return self.base_path / container

    def _object_paths(self, container: str, key: str) -> tuple[Path, Path]:
        """Get (object path, content-type path) for a key."""
        if not _is_valid_key(key):
            raise StorageException(
                message=f"Invalid object key: {key}",
                details={"key": key, "container": container},
            )
        container_path = self._container_path(container)
        return container_path / key, container_path / _CONTENT_TYPE_DIR / key

    def container_exists(self, container: str) -> bool:
        return self._container_path(container).is_dir()

    def create_container(self, container: str) -> None:
        path = self._container_path(container)
        try:
            path.mkdir()
        except FileExistsError as e:
            raise ContainerExistsException(
                message=f"Container already exists: {container}",
                details={"container": container},
            ) from e
        except OSError as e:
            raise StorageException(
                message=f"Failed to create container: {str(e)}",
                details={"container": container},
            ) from e

    def put_object(self, container: str, key: str, data: bytes, content_type: str) -> None:
        object_path, type_path = self._object_paths(container, key)

        try:
            type_path.parent.mkdir(parents=True, exist_ok=True)
            object_path.write_bytes(data)
            type_path.write_text(content_type, encoding="utf-8")
        except OSError as e:
            raise StorageException(
                message=f"Failed to upload bytes: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def object_exists(self, container: str, key: str) -> bool:
        # Invalid keys can never have been written
        if not _is_valid_key(key):
            return False
        object_path, _ = self._object_paths(container, key)
        return object_path.is_file()

    def get_object(self, container: str, key: str) -> StoredObject:
        if not _is_valid_key(key):
            raise ObjectNotFoundException(
                message=f"File not found: {key}",
                details={"key": key, "container": container},
            )

        object_path, type_path = self._object_paths(container, key)

        try:
            data = object_path.read_bytes()
        except FileNotFoundError as e:
            raise ObjectNotFoundException(
                message=f"File not found: {key}",
                details={"key": key, "container": container},
            ) from e
        except OSError as e:
            raise StorageException(
                message=f"Failed to download file: {str(e)}",
                details={"key": key, "container": container},
            ) from e

        try:
            content_type = type_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            content_type = DEFAULT_CONTENT_TYPE

        return StoredObject(data=data, content_type=content_type or DEFAULT_CONTENT_TYPE)

    def delete_object_if_exists(self, container: str, key: str) -> bool:
        if not _is_valid_key(key):
            return False

        object_path, type_path = self._object_paths(container, key)

        try:
            object_path.unlink()
            type_path.unlink(missing_ok=True)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageException(
                message=f"Failed to delete file: {str(e)}",
                details={"key": key, "container": container},
            ) from e

        return True
