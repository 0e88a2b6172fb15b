"""
Azure Blob Storage backend.
Each tenant container maps to one blob container.
"""

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from app.config import get_settings
from app.core.exceptions import (
    ContainerExistsException,
    ObjectNotFoundException,
    StorageException,
)
from app.storage.base import DEFAULT_CONTENT_TYPE, ObjectStorageBackend, StoredObject

settings = get_settings()


class AzureStorageBackend(ObjectStorageBackend):
    """
    Azure Blob Storage implementation.

    Configured via AZURE_* environment variables.
    """

    name = "azure"

    def __init__(
        self,
        connection_string: str | None = None,
        blob_service_client: BlobServiceClient | None = None,
    ):
        """
        Initialize Azure Blob storage backend.

        Args:
            connection_string: Azure Storage connection string
            blob_service_client: Pre-built client (takes precedence)
        """
        if blob_service_client is not None:
            self.blob_service_client = blob_service_client
            return

        self.connection_string = connection_string or settings.AZURE_STORAGE_CONNECTION_STRING

        if not self.connection_string:
            raise StorageException(
                message="Azure connection string not configured",
                details={"required": "AZURE_STORAGE_CONNECTION_STRING"},
            )

        self.blob_service_client = BlobServiceClient.from_connection_string(
            self.connection_string
        )

    def _get_blob_client(self, container: str, key: str):
        """Get blob client for an object."""
        return self.blob_service_client.get_blob_client(container=container, blob=key)

    def container_exists(self, container: str) -> bool:
        try:
            return self.blob_service_client.get_container_client(container).exists()
        except AzureError as e:
            raise StorageException(
                message=f"Failed to check container existence: {str(e)}",
                details={"container": container},
            ) from e

    def create_container(self, container: str) -> None:
        try:
            self.blob_service_client.get_container_client(container).create_container()
        except ResourceExistsError as e:
            raise ContainerExistsException(
                message=f"Container already exists: {container}",
                details={"container": container},
            ) from e
        except AzureError as e:
            raise StorageException(
                message=f"Failed to create container: {str(e)}",
                details={"container": container},
            ) from e

    def put_object(self, container: str, key: str, data: bytes, content_type: str) -> None:
        try:
            self._get_blob_client(container, key).upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            raise StorageException(
                message=f"Failed to upload bytes to Azure: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def object_exists(self, container: str, key: str) -> bool:
        try:
            return self._get_blob_client(container, key).exists()
        except AzureError as e:
            raise StorageException(
                message=f"Failed to check file existence: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def get_object(self, container: str, key: str) -> StoredObject:
        try:
            downloader = self._get_blob_client(container, key).download_blob()
            data = downloader.readall()
            content_type = downloader.properties.content_settings.content_type
            return StoredObject(data=data, content_type=content_type or DEFAULT_CONTENT_TYPE)

        except ResourceNotFoundError as e:
            raise ObjectNotFoundException(
                message=f"File not found: {key}",
                details={"key": key, "container": container},
            ) from e
        except AzureError as e:
            raise StorageException(
                message=f"Failed to download file from Azure: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def delete_object_if_exists(self, container: str, key: str) -> bool:
        try:
            self._get_blob_client(container, key).delete_blob()
            return True
        except ResourceNotFoundError:
            return False
        except AzureError as e:
            raise StorageException(
                message=f"Failed to delete file from Azure: {str(e)}",
                details={"key": key, "container": container},
            ) from e
