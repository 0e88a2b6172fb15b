"""Core utilities, request context and exceptions for the media gateway."""

from app.core.context import CallerIdentity, RequestContext
from app.core.exceptions import (
    MediaGatewayException,
    ValidationException,
    UnauthorizedException,
    MediaAccessDeniedException,
    MediaNotFoundException,
    PayloadTooLargeException,
    MediaUploadException,
    MediaDownloadException,
    MediaDeleteException,
    StorageException,
)

__all__ = [
    "CallerIdentity",
    "RequestContext",
    "MediaGatewayException",
    "ValidationException",
    "UnauthorizedException",
    "MediaAccessDeniedException",
    "MediaNotFoundException",
    "PayloadTooLargeException",
    "MediaUploadException",
    "MediaDownloadException",
    "MediaDeleteException",
    "StorageException",
]
