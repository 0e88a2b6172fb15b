"""
S3-compatible storage backend.
Supports AWS S3 and S3-compatible services like MinIO.
Each tenant container maps to one bucket.
"""

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings
from app.core.exceptions import (
    ContainerExistsException,
    ObjectNotFoundException,
    StorageException,
)
from app.storage.base import DEFAULT_CONTENT_TYPE, ObjectStorageBackend, StoredObject

settings = get_settings()

_MISSING_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
_BUCKET_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def _error_code(error: ClientError) -> str | None:
    return error.response.get("Error", {}).get("Code")


class S3StorageBackend(ObjectStorageBackend):
    """
    S3-compatible object storage implementation.

    Configured via S3_* environment variables.
    """

    name = "s3"

    def __init__(
        self,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        client=None,
    ):
        """
        Initialize S3 storage backend.

        Args:
            endpoint_url: S3 endpoint URL (for MinIO, custom S3-compatible services)
            access_key: AWS access key ID
            secret_key: AWS secret access key
            region: AWS region
            client: Pre-built boto3 S3 client (takes precedence)
        """
        self.endpoint_url = endpoint_url or settings.S3_ENDPOINT_URL
        self.region = region or settings.S3_REGION

        if client is not None:
            self.client = client
            return

        config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=access_key or settings.S3_ACCESS_KEY,
            aws_secret_access_key=secret_key or settings.S3_SECRET_KEY,
            region_name=self.region,
            config=config,
        )

    def container_exists(self, container: str) -> bool:
        try:
            self.client.head_bucket(Bucket=container)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise StorageException(
                message=f"Failed to check bucket existence: {str(e)}",
                details={"container": container},
            ) from e
        except BotoCoreError as e:
            raise StorageException(
                message=f"Failed to check bucket existence: {str(e)}",
                details={"container": container},
            ) from e

    def create_container(self, container: str) -> None:
        try:
            if self.region and self.region != "us-east-1":
                self.client.create_bucket(
                    Bucket=container,
                    CreateBucketConfiguration={"LocationConstraint": self.region},
                )
            else:
                self.client.create_bucket(Bucket=container)
        except ClientError as e:
            if _error_code(e) in _BUCKET_EXISTS_CODES:
                raise ContainerExistsException(
                    message=f"Bucket already exists: {container}",
                    details={"container": container},
                ) from e
            raise StorageException(
                message=f"Failed to create bucket: {str(e)}",
                details={"container": container},
            ) from e
        except BotoCoreError as e:
            raise StorageException(
                message=f"Failed to create bucket: {str(e)}",
                details={"container": container},
            ) from e

    def put_object(self, container: str, key: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=container,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageException(
                message=f"Failed to upload bytes to S3: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def object_exists(self, container: str, key: str) -> bool:
        try:
            self.client.head_object(Bucket=container, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise StorageException(
                message=f"Failed to check file existence: {str(e)}",
                details={"key": key, "container": container},
            ) from e
        except BotoCoreError as e:
            raise StorageException(
                message=f"Failed to check file existence: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def get_object(self, container: str, key: str) -> StoredObject:
        try:
            response = self.client.get_object(Bucket=container, Key=key)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
            return StoredObject(
                data=data,
                content_type=response.get("ContentType") or DEFAULT_CONTENT_TYPE,
            )

        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise ObjectNotFoundException(
                    message=f"File not found: {key}",
                    details={"key": key, "container": container},
                ) from e
            raise StorageException(
                message=f"Failed to download file from S3: {str(e)}",
                details={"key": key, "container": container},
            ) from e
        except BotoCoreError as e:
            raise StorageException(
                message=f"Failed to download file from S3: {str(e)}",
                details={"key": key, "container": container},
            ) from e

    def delete_object_if_exists(self, container: str, key: str) -> bool:
        # S3 DeleteObject succeeds for missing keys, so check first
        if not self.object_exists(container, key):
            return False

        try:
            self.client.delete_object(Bucket=container, Key=key)
            return True
        except (ClientError, BotoCoreError) as e:
            raise StorageException(
                message=f"Failed to delete file from S3: {str(e)}",
                details={"key": key, "container": container},
            ) from e
