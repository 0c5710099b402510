"""
Ordering helpers for folder providers.

Sequential mode sorts files by a timestamp key: Reolink pipe-encoded URIs
carry two 14-digit timestamps (the second is the clip start), other files
use the date found in their name. Dated files come before undated ones,
which fall back to alphabetical order. Date-named subfolders ("20240315",
"2024-03-15", "2024/3/15", "15") sort by their numeric date value.
"""

import re
from typing import Iterable, List, Optional

from media_card.config import DateTimeFormatConfig
from media_card.metadata.datetime_format import parse_with_format
from media_card.metadata.path_parser import extract_date_from_filename, extract_filename
from media_card.providers.base import MediaItem
from media_card.sources.base import BrowseEntry

_TIMESTAMP_SEGMENT = re.compile(r"^\d{14}$")
_DIGITS = re.compile(r"\d+")


def timestamp_key(
    item: MediaItem,
    format_config: Optional[DateTimeFormatConfig] = None,
) -> Optional[int]:
    """
    Get a sortable YYYYMMDDHHMMSS number for an item.

    Args:
        item: Media item
        format_config: Optional custom filename pattern

    Returns:
        Timestamp as an integer, or None if the item carries no date
    """
    media_id = item.media_content_id
    if "reolink" in media_id and "|" in media_id:
        stamps = [part for part in media_id.split("|") if _TIMESTAMP_SEGMENT.match(part)]
        if stamps:
            return int(stamps[1] if len(stamps) > 1 else stamps[0])

    filename = item.title or extract_filename(media_id)
    captured = None
    if format_config is not None:
        captured = parse_with_format(filename, format_config.filename_pattern)
    if captured is None:
        captured = extract_date_from_filename(filename)
    if captured is None:
        return None
    return int(captured.strftime("%Y%m%d%H%M%S"))


def sort_items(
    items: Iterable[MediaItem],
    direction: str = "desc",
    format_config: Optional[DateTimeFormatConfig] = None,
) -> List[MediaItem]:
    """
    Sort items for sequential playback.

    Args:
        items: Items to sort
        direction: "desc" (newest first) or "asc"
        format_config: Optional custom filename pattern

    Returns:
        Dated items in date order followed by undated items by title
    """
    reverse = direction == "desc"
    dated = []
    undated = []
    for item in items:
        key = timestamp_key(item, format_config)
        if key is None:
            undated.append(item)
        else:
            dated.append((key, item))

    dated.sort(key=lambda pair: pair[0], reverse=reverse)
    undated.sort(
        key=lambda item: (item.title or extract_filename(item.media_content_id)).lower(),
        reverse=reverse,
    )
    return [item for _, item in dated] + undated


def folder_date_value(name: str) -> int:
    """
    Get a numeric date value from a folder name.

    "20240315" -> 20240315, "2024-03-15" or "2024/3/15" -> 20240315,
    "15" -> 15, names without digits -> 0.
    """
    numbers = _DIGITS.findall(name)
    if not numbers:
        return 0
    if len(numbers) == 1:
        return int(numbers[0])
    if len(numbers) >= 3:
        year, month, day = (int(n) for n in numbers[:3])
        return year * 10000 + month * 100 + day
    return int("".join(numbers))


def sort_folders(entries: Iterable[BrowseEntry], direction: str = "desc") -> List[BrowseEntry]:
    """Sort subfolders by the date value of their names."""
    return sorted(
        entries,
        key=lambda entry: folder_date_value(entry.title or entry.name),
        reverse=direction == "desc",
    )
