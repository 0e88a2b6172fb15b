"""
Custom exceptions for the media storage gateway.

Caller-facing failures each have their own class and stable ``error`` code so
the HTTP layer can map them to a status. Backend-level ``StorageException``s
are internal: the gateway chains them into one of the caller-facing kinds.
"""

from typing import Any


class MediaGatewayException(Exception):
    """Base exception for all gateway errors."""

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary."""
        response = {
            "error": self.error,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class ValidationException(MediaGatewayException):
    """400 - Malformed request (empty upload, missing file)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="validation_failed",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedException(MediaGatewayException):
    """401 - Missing or invalid bearer token."""

    def __init__(self, message: str = "Valid token required"):
        super().__init__(
            error="unauthorized",
            message=message,
            status_code=401,
        )


class MediaAccessDeniedException(MediaGatewayException):
    """403 - The permission service denied the read, or could not be reached."""

    def __init__(self, key: str, tenant: str | None = None):
        super().__init__(
            error="forbidden",
            message="User not allowed to view media file",
            status_code=403,
            details={"key": key, "tenant": tenant},
        )


class MediaNotFoundException(MediaGatewayException):
    """404 - Object does not exist in the tenant's container."""

    def __init__(self, key: str, tenant: str | None = None):
        super().__init__(
            error="not_found",
            message=f"File not found with name: {key}",
            status_code=404,
            details={"key": key, "tenant": tenant},
        )


class PayloadTooLargeException(MediaGatewayException):
    """413 - Upload size exceeds limit."""

    def __init__(self, max_size: int):
        max_size_mb = max_size / (1024 * 1024)
        super().__init__(
            error="payload_too_large",
            message=f"Maximum upload size exceeded ({max_size_mb:.0f}MB limit)",
            status_code=413,
        )


class MediaUploadException(MediaGatewayException):
    """500 - Backend write error or input stream I/O error."""

    def __init__(self, key: str, tenant: str | None = None):
        super().__init__(
            error="upload_failed",
            message="Failed to upload file",
            status_code=500,
            details={"key": key, "tenant": tenant},
        )


class MediaDownloadException(MediaGatewayException):
    """500 - Backend read error (distinct from absence)."""

    def __init__(self, key: str, tenant: str | None = None):
        super().__init__(
            error="download_failed",
            message=f"Failed to download file '{key}'",
            status_code=500,
            details={"key": key, "tenant": tenant},
        )


class MediaDeleteException(MediaGatewayException):
    """500 - Backend delete error. Never raised for a missing object."""

    def __init__(self, key: str, tenant: str | None = None):
        super().__init__(
            error="delete_failed",
            message=f"Failed to delete file '{key}'",
            status_code=500,
            details={"key": key, "tenant": tenant},
        )


class StorageException(MediaGatewayException):
    """500 - Storage backend error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="storage_error",
            message=message,
            status_code=500,
            details=details,
        )


class ContainerExistsException(StorageException):
    """Container creation lost a race: the container already exists."""


class ObjectNotFoundException(StorageException):
    """Object vanished between the existence check and the read."""
