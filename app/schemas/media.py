"""
Pydantic schemas for media upload responses.
"""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, enum.Enum):
    """Coarse media classification derived from the declared content type."""

    IMAGE = "Image"
    VIDEO = "Video"
    GENERIC = "File"


class GeoLocation(BaseModel):
    """GPS position in decimal degrees."""

    latitude: float
    longitude: float

    model_config = ConfigDict(frozen=True)


class MediaAttributes(BaseModel):
    """
    Description of an uploaded object, derived once at upload time.

    Returned to the uploader; never persisted by the gateway.
    """

    kind: MediaKind
    format: str = Field(..., description="Structural format name, or the content-type subtype")
    size: int = Field(..., ge=0, description="Object size in bytes")
    width: int | None = Field(default=None, description="Pixel width, when parseable")
    height: int | None = Field(default=None, description="Pixel height, when parseable")
    capture_time: datetime | None = Field(default=None, alias="captureTime")
    geo_location: GeoLocation | None = Field(default=None, alias="geoLocation")
    upload_time: datetime = Field(alias="uploadTime")

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )


class MediaUploadResponse(MediaAttributes):
    """Response for a successful upload: the new object key plus its attributes."""

    key: str = Field(..., description="Unique object key used for download and delete")
    filename: str | None = Field(default=None, description="Original client filename")
