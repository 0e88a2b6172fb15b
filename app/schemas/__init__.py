"""
Pydantic schemas for request/response validation.
"""

from app.schemas.audit import AuditAction, AuditRecord
from app.schemas.error import ErrorResponse
from app.schemas.media import GeoLocation, MediaAttributes, MediaKind, MediaUploadResponse

__all__ = [
    # Media schemas
    "GeoLocation",
    "MediaAttributes",
    "MediaKind",
    "MediaUploadResponse",
    # Audit schemas
    "AuditAction",
    "AuditRecord",
    # Error schemas
    "ErrorResponse",
]
