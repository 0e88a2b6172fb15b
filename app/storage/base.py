"""
Abstract object-storage backend interface.
Defines the contract for all storage implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StoredObject:
    """Object bytes together with the content type they were stored with."""

    data: bytes
    content_type: str


class ObjectStorageBackend(ABC):
    """
    Abstract base class for object-storage backends.

    A backend exposes named containers holding named objects. All
    implementations (Local, S3, Azure) are synchronous and perform a
    single attempt per call; any retry policy lives in the client
    configuration of the concrete backend.
    """

    name: str = "abstract"

    @abstractmethod
    def container_exists(self, container: str) -> bool:
        """
        Check whether a container exists.

        Raises:
            StorageException: If the backend cannot be reached
        """

    @abstractmethod
    def create_container(self, container: str) -> None:
        """
        Create a container.

        Raises:
            ContainerExistsException: If the container already exists
            StorageException: If creation fails for other reasons
        """

    @abstractmethod
    def put_object(
        self,
        container: str,
        key: str,
        data: bytes,
        content_type: str,
    ) -> None:
        """
        Write an object, overwriting any previous object under the key.

        Args:
            container: Target container name
            key: Object key within the container
            data: Raw object bytes
            content_type: MIME type stored as the object's content type

        Raises:
            StorageException: If the write fails
        """

    @abstractmethod
    def object_exists(self, container: str, key: str) -> bool:
        """
        Check whether an object exists.

        Raises:
            StorageException: If the check fails
        """

    @abstractmethod
    def get_object(self, container: str, key: str) -> StoredObject:
        """
        Read an object and its stored content type.

        Raises:
            ObjectNotFoundException: If the object does not exist
            StorageException: If the read fails
        """

    @abstractmethod
    def delete_object_if_exists(self, container: str, key: str) -> bool:
        """
        Delete an object if present.

        Returns:
            True if an object was removed, False if there was nothing to delete

        Raises:
            StorageException: If deletion fails for other reasons
        """
