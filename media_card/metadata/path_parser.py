"""
Path-based metadata extraction.

Derives filename, folder and capture date from a media reference without
touching the network. Handles plain paths ("/media/Photos/a.jpg"),
media-source URIs ("media-source://media_source/media/Photos/a.jpg") and
Immich/Reolink pipe-delimited URIs
("media-source://immich/uuid|albums|uuid|IMG_1.jpg|image/jpeg").

Nothing in this module raises on malformed input: undecodable segments are
kept as-is and unparseable dates are left empty.
"""

import logging
import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from urllib.parse import unquote

from media_card.config import DateTimeFormatConfig
from media_card.metadata.datetime_format import parse_with_format
from media_card.metadata.models import ExtractedMetadata

logger = logging.getLogger(__name__)


def _ymd_hms(m: "re.Match[str]") -> Tuple[int, ...]:
    return tuple(int(g) for g in m.groups())


def _compact(m: "re.Match[str]") -> Tuple[int, ...]:
    ts = m.group(1)
    parts = [int(ts[0:4]), int(ts[4:6]), int(ts[6:8])]
    if len(ts) == 14:
        parts += [int(ts[8:10]), int(ts[10:12]), int(ts[12:14])]
    return tuple(parts)


def _dmy(m: "re.Match[str]") -> Tuple[int, ...]:
    day, month, year = (int(g) for g in m.groups())
    return year, month, day


# Built-in filename date patterns, tried in order. Each maps a match to
# (year, month, day[, hour, minute, second]).
BUILTIN_DATE_PATTERNS: List[Tuple["re.Pattern[str]", Callable[..., Tuple[int, ...]]]] = [
    # 20250920_211023, Tanya_20220727_140134.jpg
    (re.compile(r"(\d{4})(\d{2})(\d{2})[_-](\d{2})(\d{2})(\d{2})"), _ymd_hms),
    # 20250920211023
    (re.compile(r"(\d{14})"), _compact),
    # 2025-09-20_21-10-23, 2025-09-20T21:10:23
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})[_T\s](\d{2})[:-](\d{2})[:-](\d{2})"), _ymd_hms),
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})"), _ymd_hms),
    (re.compile(r"(\d{8})"), _compact),
    (re.compile(r"(\d{2})-(\d{2})-(\d{4})"), _dmy),
]


# ============================================================================
# Path Helpers
# ============================================================================


def normalize_path(reference: str) -> str:
    """
    Convert pipe-delimited URIs to slash-delimited paths.

    A trailing "|type/subtype" segment is a MIME type and is dropped.

    Args:
        reference: Raw media reference

    Returns:
        Reference with "|" separators replaced by "/"
    """
    if "|" not in reference:
        return reference

    head, _, tail = reference.rpartition("|")
    if "/" in tail:
        return head.replace("|", "/")
    return reference.replace("|", "/")


def decode_segment(segment: str) -> str:
    """Percent-decode a path segment, keeping the raw value if it is not valid UTF-8."""
    try:
        return unquote(segment, errors="strict")
    except UnicodeDecodeError:
        logger.debug(f"Failed to decode path segment: {segment}")
        return segment


def extract_filename(path: str) -> str:
    """
    Get the undecoded filename of a path.

    Args:
        path: File path or URI

    Returns:
        Last "/" segment with any "|..." suffix removed
    """
    if not path:
        return ""
    filename = path.rsplit("/", 1)[-1] or path
    return filename.split("|", 1)[0]


def extract_folder(path: str) -> Optional[str]:
    """
    Get the decoded folder path of a normalized path.

    The folder starts after the first "media" segment that is followed by a
    non-empty segment, so "/media/Photos/2024/a.jpg" yields "Photos/2024".

    Args:
        path: Normalized (slash-delimited) path

    Returns:
        Folder path, or None when the reference has no folder part
    """
    parts = path.split("/")
    if len(parts) < 2:
        return None

    start = 0
    for i in range(len(parts) - 1):
        if parts[i] == "media" and parts[i + 1] != "":
            start = i + 1
            break

    folder = "/".join(decode_segment(part) for part in parts[start:-1])
    return folder or None


def extract_date_from_filename(filename: str) -> Optional[datetime]:
    """
    Parse a capture date from common filename conventions.

    Patterns are tried in order; a match that is not a valid calendar date
    falls through to the next pattern.

    Args:
        filename: Decoded filename

    Returns:
        datetime, or None if no pattern yields a valid date
    """
    if not filename:
        return None

    for pattern, convert in BUILTIN_DATE_PATTERNS:
        match = pattern.search(filename)
        if not match:
            continue
        try:
            return datetime(*convert(match))
        except ValueError:
            continue
    return None


# ============================================================================
# Extraction
# ============================================================================


def extract_metadata(
    reference: str,
    format_config: Optional[DateTimeFormatConfig] = None,
) -> ExtractedMetadata:
    """
    Extract filename, folder and capture date from a media reference.

    Date sources, first match wins: the folder pattern applied to the
    folder path, the filename pattern applied to the filename, then the
    built-in filename patterns.

    Args:
        reference: File path or media-source URI
        format_config: Optional custom date/time patterns

    Returns:
        ExtractedMetadata (empty for an empty reference)
    """
    if not reference:
        return ExtractedMetadata()

    normalized = normalize_path(reference)
    filename = decode_segment(extract_filename(normalized))
    folder = extract_folder(normalized)

    captured_at = None
    if format_config is not None:
        if folder:
            captured_at = parse_with_format(folder, format_config.folder_pattern)
        if captured_at is None:
            captured_at = parse_with_format(filename, format_config.filename_pattern)
    if captured_at is None:
        captured_at = extract_date_from_filename(filename)

    return ExtractedMetadata(filename=filename, folder=folder, captured_at=captured_at)
