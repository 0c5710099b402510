"""
Remote metadata enrichment.

Fetches the media index record for a file and merges it over the metadata
extracted from its path. The index answers in two shapes:

- get_file_metadata nests EXIF fields under an "exif" object
- get_random_items / get_ordered_files return flat records

Both normalize to the same flat record before merging. Enrichment never
fails: remote errors are logged and the extracted metadata is returned with
empty remote fields.
"""

import logging
from typing import Any, Dict, Optional

from media_card.api_client import (
    MEDIA_INDEX_DOMAIN,
    RemoteClient,
    entity_target,
    media_path_field,
    unwrap_response,
)
from media_card.config import MediaIndexConfig
from media_card.metadata.models import EnrichedMetadata, ExtractedMetadata, parse_timestamp

logger = logging.getLogger(__name__)

GET_FILE_METADATA = "get_file_metadata"

LOCATION_FIELDS = (
    "location_city",
    "location_state",
    "location_country",
    "location_country_code",
    "location_name",
)
CAMERA_FIELDS = ("camera_make", "camera_model")


# ============================================================================
# Normalization
# ============================================================================


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _as_float(value: Any) -> Optional[float]:
    if not _present(value) or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_flag(value: Any) -> bool:
    """Interpret 0/1, booleans and "true"/"1" strings."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return value is True or value == 1


def _as_text(value: Any) -> Optional[str]:
    return str(value) if _present(value) else None


def _has_coordinates(record: Dict[str, Any]) -> bool:
    return _present(record.get("latitude")) and _present(record.get("longitude"))


def _is_geocoded(record: Dict[str, Any]) -> bool:
    return any(
        _present(record.get(key))
        for key in ("location_city", "location_state", "location_country")
    )


def _normalize_fields(source: Dict[str, Any], top: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the normalized record from EXIF-level and file-level fields.

    Only keys with a usable value are included, so absent remote fields never
    overwrite extracted values.
    """
    record: Dict[str, Any] = {
        "captured_at": parse_timestamp(source.get("date_taken")),
        "created_time": parse_timestamp(top.get("created_time")),
        "latitude": _as_float(source.get("latitude")),
        "longitude": _as_float(source.get("longitude")),
        "filename": _as_text(top.get("filename")),
        "folder": _as_text(top.get("folder")),
        "path": _as_text(top.get("path")),
        "media_source_uri": _as_text(top.get("media_source_uri")),
    }
    for key in LOCATION_FIELDS + CAMERA_FIELDS:
        record[key] = _as_text(source.get(key))

    return {key: value for key, value in record.items() if value is not None}


def normalize_file_metadata(response: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a get_file_metadata response.

    EXIF fields are read from the nested "exif" object when present, falling
    back to top-level keys for flat responses. Derived flags are always
    recomputed.

    Args:
        response: Unwrapped service response

    Returns:
        Flat normalized record
    """
    exif = response.get("exif")
    source = exif if isinstance(exif, dict) else response

    record = _normalize_fields(source, response)
    record["has_coordinates"] = _has_coordinates(record)
    record["is_geocoded"] = _is_geocoded(record)
    record["is_favorited"] = _as_flag(source.get("is_favorited")) or _as_flag(
        response.get("is_favorited")
    )
    record["marked_for_edit"] = False
    return record


def normalize_index_record(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a flat record delivered with an index provider item.

    Explicit has_coordinates / is_geocoded values pass through; missing ones
    are computed from the constituent fields. filename and folder fall back
    to the parts of "path".

    Args:
        item: Record from get_random_items or get_ordered_files

    Returns:
        Flat normalized record
    """
    record = _normalize_fields(item, item)

    path = record.get("path")
    if path and "filename" not in record:
        record["filename"] = path.rsplit("/", 1)[-1]
    if path and "folder" not in record and "/" in path:
        record["folder"] = path.rsplit("/", 1)[0]

    if item.get("has_coordinates") is not None:
        record["has_coordinates"] = _as_flag(item["has_coordinates"])
    else:
        record["has_coordinates"] = _has_coordinates(record)
    if item.get("is_geocoded") is not None:
        record["is_geocoded"] = _as_flag(item["is_geocoded"])
    else:
        record["is_geocoded"] = _is_geocoded(record)

    record["is_favorited"] = _as_flag(item.get("is_favorited"))
    record["marked_for_edit"] = _as_flag(item.get("marked_for_edit"))
    return record


def merge_metadata(
    extracted: ExtractedMetadata,
    remote: Optional[Dict[str, Any]] = None,
) -> EnrichedMetadata:
    """
    Merge a normalized remote record over extracted metadata.

    Args:
        extracted: Path-derived metadata
        remote: Normalized remote record (keys present here win)

    Returns:
        New EnrichedMetadata; the inputs are not modified
    """
    data = extracted.model_dump()
    if remote:
        data.update(remote)
    return EnrichedMetadata(**data)


# ============================================================================
# MetadataEnricher Class
# ============================================================================


class MetadataEnricher:
    """
    Enriches extracted metadata with the media index record.

    Attributes:
        is_active: Whether remote enrichment will be attempted
    """

    def __init__(
        self,
        client: Optional[RemoteClient],
        media_index: Optional[MediaIndexConfig] = None,
    ):
        """
        Initialize the enricher.

        Args:
            client: Remote client, or None to disable enrichment
            media_index: Media index options (enabled flag, entity id)
        """
        self._client = client
        self._media_index = media_index or MediaIndexConfig()

    @property
    def is_active(self) -> bool:
        return self._client is not None and self._media_index.is_active

    async def fetch_record(self, reference: str) -> Optional[Dict[str, Any]]:
        """
        Fetch and normalize the index record for a file.

        Args:
            reference: File path or media-source URI

        Returns:
            Normalized record, or None if enrichment is inactive, the file is
            unknown to the index, or the call fails
        """
        if not self.is_active or not reference:
            return None

        try:
            response = await self._client.call_service(
                MEDIA_INDEX_DOMAIN,
                GET_FILE_METADATA,
                service_data=media_path_field(reference),
                target=entity_target(self._media_index.entity_id),
            )
            response = unwrap_response(response)
            if not isinstance(response, dict) or not response:
                logger.warning(f"Unexpected metadata response for {reference}: {response!r}")
                return None
            if "error" in response:
                logger.warning(f"Media index error for {reference}: {response['error']}")
                return None
            return normalize_file_metadata(response)
        except Exception as e:
            logger.warning(f"Failed to fetch media index metadata for {reference}: {e}")
            return None

    async def enrich(
        self,
        reference: str,
        extracted: ExtractedMetadata,
    ) -> EnrichedMetadata:
        """
        Merge the remote record for a file over its extracted metadata.

        Args:
            reference: File path or media-source URI
            extracted: Metadata derived from the reference

        Returns:
            EnrichedMetadata; remote fields stay empty when no record is found
        """
        record = await self.fetch_record(reference)
        return merge_metadata(extracted, record)

    @staticmethod
    def from_index_record(
        extracted: ExtractedMetadata,
        item: Dict[str, Any],
    ) -> EnrichedMetadata:
        """
        Build enriched metadata from a record that arrived with the item.

        Args:
            extracted: Metadata derived from the item path
            item: Flat index record

        Returns:
            EnrichedMetadata without a remote round trip
        """
        return merge_metadata(extracted, normalize_index_record(item))
