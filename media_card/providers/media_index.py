"""
Media index provider (random mode).

Draws random items from the media index database via the
media_index.get_random_items service. The queue is refilled in the
background when it runs low; new results are de-duplicated against the
queue and the navigation history.

With priority_new_files the index puts recently indexed files first. When
most of those are already known (two consecutive refills with more than
80% duplicates) the recent-file cache is considered exhausted and plain
random queries are used until a refill yields mostly new items again.
"""

import logging
from typing import Any, Dict, List, Optional

from media_card.api_client import MEDIA_INDEX_DOMAIN, entity_target, unwrap_response
from media_card.media_types import is_supported
from media_card.providers.base import (
    REFILL_THRESHOLD,
    MediaItem,
    MediaProvider,
    ProviderError,
    dump_items,
    load_items,
)

logger = logging.getLogger(__name__)

GET_RANDOM_ITEMS = "get_random_items"

HIGH_FILTER_RATIO = 0.8
EXHAUSTION_THRESHOLD = 2


# ============================================================================
# Index Helpers
# ============================================================================


def resolve_media_path(path: str) -> str:
    """
    Convert an index path to a media-source URI.

    "/media/Photo/a.jpg" -> "media-source://media_source/media/Photo/a.jpg";
    URIs pass through; other paths are taken as relative to /media.
    """
    if path.startswith("media-source://"):
        return path
    if path.startswith("/media/"):
        return f"media-source://media_source{path}"
    return f"media-source://media_source/media/{path.lstrip('/')}"


def record_to_item(record: Dict[str, Any]) -> MediaItem:
    """Build a media item from an index record, keeping the record attached."""
    path = record["path"]
    return MediaItem(
        media_content_id=record.get("media_source_uri") or resolve_media_path(path),
        title=record.get("filename") or path.rsplit("/", 1)[-1],
        path=path,
        record=record,
    )


def base_query(config) -> Dict[str, Any]:
    """
    Build the service data shared by the index queries.

    Immich album URIs are not index folders, so no folder filter is sent
    for them. None values are omitted.
    """
    folder = config.folder
    folder_filter = folder.path
    if folder_filter and folder_filter.startswith("media-source://immich"):
        folder_filter = None

    data = {
        "folder": folder_filter,
        "recursive": folder.recursive,
        "file_type": None if config.media_type == "all" else config.media_type,
        "priority_new_files": folder.priority_new_files,
        "new_files_threshold_seconds": folder.new_files_threshold_seconds,
    }
    return {key: value for key, value in data.items() if value is not None}


# ============================================================================
# MediaIndexProvider Class
# ============================================================================


class MediaIndexProvider(MediaProvider):
    """
    Random provider backed by the media index.

    Attributes:
        recent_files_exhausted: Whether priority_new_files is being skipped
    """

    provider_type = "media_index"

    def __init__(self, config, *args, **kwargs):
        super().__init__(config, *args, **kwargs)
        self._queue_size = config.slideshow_window
        self._queue: List[MediaItem] = []
        self._recent_exhausted = False
        self._high_filter_count = 0

    @property
    def recent_files_exhausted(self) -> bool:
        return self._recent_exhausted

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    async def initialize(self) -> bool:
        if self._client is None or not self._config.media_index.is_active:
            logger.warning("Media index provider: media index not configured")
            return False

        try:
            records = await self._query(self._queue_size, self._config.folder.priority_new_files)
        except ProviderError as e:
            logger.error(f"Media index query failed: {e}")
            return False

        if records is None:
            logger.error("Media index returned an invalid response")
            return False

        items = self._to_items(records)
        if not items:
            if self._has_filters():
                logger.warning("No media index items match the configured filters")
            else:
                logger.warning("Media index returned no items")
            return False

        self._queue = items
        self._initialized = True
        self._log(f"Initialized with {len(items)} items")
        return True

    async def get_next(self) -> Optional[MediaItem]:
        self._require_initialized()

        if len(self._queue) < REFILL_THRESHOLD:
            if self._queue:
                self._spawn_refill()
            else:
                await self._refill_now()

        while self._queue:
            item = self._queue.pop(0)
            if not self._is_excluded(item):
                return item

        self._log("Queue empty, no items to return")
        return None

    async def _refill_now(self) -> None:
        if self._refill_running:
            await self._await_refill()
            if not self._queue and self._refill_error is not None:
                error, self._refill_error = self._refill_error, None
                raise error
            return
        await self._refill()

    # -------------------------------------------------------------------------
    # Querying
    # -------------------------------------------------------------------------

    def _has_filters(self) -> bool:
        filters = self._config.filters
        return bool(filters.favorites or filters.date_range.start or filters.date_range.end)

    def _service_data(self, count: int, priority_new_files: bool) -> Dict[str, Any]:
        data = base_query(self._config)
        data["count"] = count
        data["priority_new_files"] = priority_new_files

        filters = self._config.filters
        if filters.favorites:
            data["favorites_only"] = True
        if filters.date_range.start:
            data["date_from"] = filters.date_range.start
        if filters.date_range.end:
            data["date_to"] = filters.date_range.end
        return data

    async def _query(self, count: int, priority_new_files: bool) -> Optional[List[Dict[str, Any]]]:
        """
        Call get_random_items.

        Returns:
            Records with a path, or None if the response has no item list

        Raises:
            ProviderError: If the call keeps failing
        """
        response = await self._call_with_retries(
            f"{MEDIA_INDEX_DOMAIN}.{GET_RANDOM_ITEMS}",
            self._client.call_service,
            MEDIA_INDEX_DOMAIN,
            GET_RANDOM_ITEMS,
            service_data=self._service_data(count, priority_new_files),
            target=entity_target(self._config.media_index.entity_id),
        )
        response = unwrap_response(response)
        items = response.get("items") if isinstance(response, dict) else None
        if not isinstance(items, list):
            logger.warning(f"No items in media index response: {response!r}")
            return None
        return [record for record in items if isinstance(record, dict) and record.get("path")]

    def _to_items(self, records: List[Dict[str, Any]]) -> List[MediaItem]:
        """Convert records, dropping excluded files and unsupported formats."""
        items = []
        for record in records:
            path = record["path"]
            if path in self._excluded:
                self._log(f"Filtering out excluded file: {path}")
                continue
            if not is_supported(path):
                self._log(f"Filtering out unsupported format: {path}")
                continue
            items.append(record_to_item(record))
        return items

    async def _refill(self) -> None:
        folder = self._config.folder
        seen = {item.media_content_id for item in self._queue} | self._history_ids()

        use_priority = folder.priority_new_files and not self._recent_exhausted
        if folder.priority_new_files and not use_priority:
            self._log("Skipping priority_new_files, recent files exhausted")

        items = self._to_items(await self._query(self._queue_size, use_priority) or [])
        if not items:
            return

        fresh = [item for item in items if item.media_content_id not in seen]
        filtered_ratio = (len(items) - len(fresh)) / len(items)
        self._log(f"Filtered {len(items) - len(fresh)} duplicate/history items ({filtered_ratio:.0%})")

        if filtered_ratio > HIGH_FILTER_RATIO:
            self._high_filter_count += 1
            if self._high_filter_count >= EXHAUSTION_THRESHOLD and not self._recent_exhausted:
                self._recent_exhausted = True
                logger.info("Recent file cache exhausted, skipping priority_new_files")
        else:
            self._high_filter_count = 0
            self._recent_exhausted = False

        if filtered_ratio > HIGH_FILTER_RATIO and use_priority:
            self._log("Most items filtered, retrying without priority_new_files")
            fresh_ids = {item.media_content_id for item in fresh}
            for item in self._to_items(await self._query(self._queue_size, False) or []):
                if item.media_content_id not in seen and item.media_content_id not in fresh_ids:
                    fresh.append(item)
                    fresh_ids.add(item.media_content_id)

        if fresh:
            # Prepended: priority files come first from the index
            self._queue[0:0] = fresh
            self._log(f"Refilled queue with {len(fresh)} items, now {len(self._queue)}")

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _serialize_data(self) -> Dict[str, Any]:
        return {
            "queue": dump_items(self._queue),
            "recent_files_exhausted": self._recent_exhausted,
            "high_filter_count": self._high_filter_count,
        }

    def _restore_data(self, data: Dict[str, Any]) -> None:
        self._queue = load_items(data.get("queue"))
        self._recent_exhausted = data.get("recent_files_exhausted", False)
        self._high_filter_count = data.get("high_filter_count", 0)
