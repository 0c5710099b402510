"""
Metadata models.

ExtractedMetadata holds what can be derived from a media reference alone;
EnrichedMetadata layers the remote index record (EXIF date, GPS, location,
camera, user flags) on top of it.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# EXIF-style timestamps use colons in the date part
_TIMESTAMP_FORMATS = (
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y:%m:%d",
)


class ExtractedMetadata(BaseModel):
    """Metadata derived from the path of a media reference."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(default="", description="Decoded filename")
    folder: Optional[str] = Field(
        default=None, description="Decoded folder path below the media root"
    )
    captured_at: Optional[datetime] = Field(
        default=None, description="Capture date parsed from folder or filename"
    )


class EnrichedMetadata(ExtractedMetadata):
    """
    Extracted metadata merged with the remote index record.

    Remote fields default to empty; the derived flags has_coordinates and
    is_geocoded reflect the presence of their constituent fields.
    """

    created_time: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    location_country: Optional[str] = None
    location_country_code: Optional[str] = None
    location_name: Optional[str] = None
    has_coordinates: bool = False
    is_geocoded: bool = False
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    is_favorited: bool = False
    marked_for_edit: bool = False
    path: Optional[str] = Field(default=None, description="Path reported by the index")
    media_source_uri: Optional[str] = None

    @classmethod
    def from_extracted(cls, extracted: ExtractedMetadata) -> "EnrichedMetadata":
        """Promote extracted metadata with all remote fields left empty."""
        return cls(**extracted.model_dump())


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a remote timestamp into a datetime.

    Accepts unix seconds (int/float or numeric string), ISO 8601 strings
    and EXIF "YYYY:MM:DD HH:MM:SS" strings.

    Args:
        value: Raw timestamp from the remote record

    Returns:
        datetime, or None if the value is empty or unparseable
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return datetime.fromtimestamp(float(text), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        pass

    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
