"""
Media Metadata Extraction Service.
Derives kind, format, pixel dimensions, capture time and GPS position from
uploaded media bytes. Uses Pillow for structural parsing and EXIF access.

Extraction never fails an upload: anything that cannot be parsed falls back
to what the declared content type alone says about the object.
"""

import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from PIL import ExifTags, Image

from app.schemas.media import GeoLocation, MediaAttributes, MediaKind
from app.storage.base import DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)

_EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


@dataclass(frozen=True)
class FormatProbe:
    """A structural format check: reported name plus the Pillow decoder to try."""

    name: str
    pillow_format: str


# Probed in this order; the first decoder that accepts the bytes wins.
FORMAT_PROBES: tuple[FormatProbe, ...] = (
    FormatProbe("jpeg", "JPEG"),
    FormatProbe("png", "PNG"),
    FormatProbe("gif", "GIF"),
    FormatProbe("webp", "WEBP"),
    FormatProbe("bmp", "BMP"),
)


def classify_kind(content_type: str) -> MediaKind:
    """Classify by content-type prefix."""
    content_type = content_type.lower()
    if content_type.startswith("image/"):
        return MediaKind.IMAGE
    if content_type.startswith("video/"):
        return MediaKind.VIDEO
    return MediaKind.GENERIC


def content_type_subtype(content_type: str) -> str:
    """``"image/jpeg; q=1"`` -> ``"jpeg"``. Types without a slash are returned whole."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    _, slash, subtype = media_type.partition("/")
    return subtype if slash else media_type


def _rational(value: Any) -> float:
    if isinstance(value, tuple):
        numerator, denominator = value
        return numerator / denominator
    return float(value)


def gps_to_decimal(value: Any, ref: Any) -> float:
    """Convert an EXIF (degrees, minutes, seconds) triple to signed decimal degrees."""
    degrees, minutes, seconds = (_rational(v) for v in value)
    decimal = degrees + minutes / 60 + seconds / 3600
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if str(ref).strip("\x00 ").upper() in ("S", "W"):
        decimal = -decimal
    return decimal


def parse_exif_datetime(value: Any, offset: Any = None) -> datetime | None:
    """
    Parse an EXIF ``YYYY:MM:DD HH:MM:SS`` timestamp to an aware UTC datetime.

    The optional ``OffsetTime*`` value (``+02:00``) is applied when present;
    otherwise the timestamp is taken as UTC.
    """
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None

    try:
        parsed = datetime.strptime(value.strip("\x00 "), _EXIF_DATETIME_FORMAT)
    except ValueError:
        return None

    tz = timezone.utc
    if isinstance(offset, bytes):
        offset = offset.decode("ascii", errors="ignore")
    if isinstance(offset, str) and offset.strip("\x00 "):
        try:
            tz = datetime.strptime(offset.strip("\x00 "), "%z").tzinfo or timezone.utc
        except ValueError:
            tz = timezone.utc

    return parsed.replace(tzinfo=tz).astimezone(timezone.utc)


def read_capture_details(image: Any) -> tuple[datetime | None, GeoLocation | None]:
    """Read capture time and GPS position from an image's EXIF data."""
    exif = image.getexif()
    if not exif:
        return None, None

    capture_time = None
    exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
    if exif_ifd:
        capture_time = parse_exif_datetime(
            exif_ifd.get(ExifTags.Base.DateTimeOriginal),
            exif_ifd.get(ExifTags.Base.OffsetTimeOriginal),
        )

    geo_location = None
    gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
    if gps_ifd and ExifTags.GPS.GPSLatitude in gps_ifd and ExifTags.GPS.GPSLongitude in gps_ifd:
        latitude = gps_to_decimal(
            gps_ifd[ExifTags.GPS.GPSLatitude], gps_ifd.get(ExifTags.GPS.GPSLatitudeRef, "N")
        )
        longitude = gps_to_decimal(
            gps_ifd[ExifTags.GPS.GPSLongitude], gps_ifd.get(ExifTags.GPS.GPSLongitudeRef, "E")
        )
        if -90 <= latitude <= 90 and -180 <= longitude <= 180:
            geo_location = GeoLocation(latitude=latitude, longitude=longitude)

    return capture_time, geo_location


class MetadataExtractor:
    """
    Extracts media attributes from uploaded bytes.

    Stateless; a single instance is shared across request threads.
    """

    def __init__(self, probes: tuple[FormatProbe, ...] = FORMAT_PROBES):
        self.probes = probes

    def extract(self, data: bytes, content_type: str | None) -> MediaAttributes:
        """
        Extract attributes from media bytes.

        Args:
            data: Raw object bytes (never empty; empty uploads are rejected earlier)
            content_type: Declared MIME type of the upload

        Returns:
            MediaAttributes; on unparseable input only kind, format (the
            content-type subtype), size and upload time are populated
        """
        content_type = content_type or DEFAULT_CONTENT_TYPE

        fields: dict[str, Any] = {
            "kind": classify_kind(content_type),
            "format": content_type_subtype(content_type),
            "size": len(data),
            "upload_time": datetime.now(timezone.utc),
        }

        try:
            fields.update(self._extract_structural(data))
        except Exception as e:
            logger.warning(f"Structural metadata extraction failed: {e}")

        return MediaAttributes(**fields)

    def _extract_structural(self, data: bytes) -> dict[str, Any]:
        """Run the format probes in order; return fields from the first match."""
        for probe in self.probes:
            try:
                image = Image.open(io.BytesIO(data), formats=[probe.pillow_format])
            except Exception:
                continue

            with image:
                found: dict[str, Any] = {"format": probe.name}
                width, height = image.size
                if width > 0 and height > 0:
                    found["width"] = width
                    found["height"] = height

                try:
                    capture_time, geo_location = read_capture_details(image)
                except Exception as e:
                    logger.debug(f"Ignoring unreadable EXIF data in {probe.name} image: {e}")
                else:
                    if capture_time is not None:
                        found["capture_time"] = capture_time
                    if geo_location is not None:
                        found["geo_location"] = geo_location

                return found

        return {}


# Singleton instance
_extractor: MetadataExtractor | None = None


def get_metadata_extractor() -> MetadataExtractor:
    """Get the singleton metadata extractor instance."""
    global _extractor
    if _extractor is None:
        _extractor = MetadataExtractor()
    return _extractor
