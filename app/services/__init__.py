"""
Business logic services for the media gateway.
Services handle core operations separate from API endpoints.
"""

from app.services.audit import AuditPublisher, AuditSink, KafkaAuditSink, get_audit_publisher
from app.services.metadata_extractor import MetadataExtractor, get_metadata_extractor
from app.services.storage_gateway import (
    MediaDownload,
    StorageGateway,
    UploadResult,
    get_storage_gateway,
)

__all__ = [
    "AuditPublisher",
    "AuditSink",
    "KafkaAuditSink",
    "get_audit_publisher",
    "MetadataExtractor",
    "get_metadata_extractor",
    "MediaDownload",
    "StorageGateway",
    "UploadResult",
    "get_storage_gateway",
]
