"""
Sequential media index provider.

Walks the media index in a fixed order using media_index.get_ordered_files
with cursor pagination: each page is requested with after_value set to the
sort value of the last record already fetched. A short page marks the end
of the collection; playback then starts over unless folder.loop is off.
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
from media_card.providers.media_index import base_query, record_to_item

logger = logging.getLogger(__name__)

GET_ORDERED_FILES = "get_ordered_files"


class SequentialMediaIndexProvider(MediaProvider):
    """
    Ordered provider backed by the media index.

    Attributes:
        has_more: Whether the index may hold records past the cursor
        cursor: Sort value of the last fetched record
    """

    provider_type = "sequential_media_index"

    def __init__(self, config, *args, **kwargs):
        super().__init__(config, *args, **kwargs)
        self._page_size = config.slideshow_window
        self._order_by = config.folder.order_by
        self._order_direction = config.folder.sequential.order_direction
        self._queue: List[MediaItem] = []
        self._cursor: Any = None
        self._has_more = True

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def cursor(self) -> Any:
        return self._cursor

    async def initialize(self) -> bool:
        if self._client is None or not self._config.media_index.is_active:
            logger.warning("Sequential media index provider: media index not configured")
            return False

        try:
            await self._refill()
        except ProviderError as e:
            logger.error(f"Ordered media index query failed: {e}")
            return False

        if not self._queue:
            logger.warning("Media index returned no ordered items")
            return False

        self._initialized = True
        self._log(f"Initialized with {len(self._queue)} items ({self._order_by} {self._order_direction})")
        return True

    async def get_next(self) -> Optional[MediaItem]:
        self._require_initialized()

        item = await self._next_from_queue()
        if item is None and self._config.folder.loop:
            self._log("Reached end of sequence, looping back to start")
            await self._await_refill()
            self._queue = []
            self._cursor = None
            self._has_more = True
            self._excluded.clear()
            item = await self._next_from_queue()
        return item

    async def _next_from_queue(self) -> Optional[MediaItem]:
        while True:
            if len(self._queue) < REFILL_THRESHOLD and self._has_more:
                if self._queue:
                    self._spawn_refill()
                elif self._refill_running:
                    await self._await_refill()
                    if not self._queue and self._refill_error is not None:
                        error, self._refill_error = self._refill_error, None
                        raise error
                else:
                    await self._refill()

            if not self._queue:
                return None

            item = self._queue.pop(0)
            if not self._is_excluded(item):
                return item

    # -------------------------------------------------------------------------
    # Querying
    # -------------------------------------------------------------------------

    def _service_data(self) -> Dict[str, Any]:
        data = base_query(self._config)
        data["count"] = self._page_size
        data["order_by"] = self._order_by
        data["order_direction"] = self._order_direction
        if self._cursor is not None:
            data["after_value"] = self._cursor
        return data

    async def _refill(self) -> None:
        """Fetch the page after the cursor and append it to the queue."""
        response = await self._call_with_retries(
            f"{MEDIA_INDEX_DOMAIN}.{GET_ORDERED_FILES}",
            self._client.call_service,
            MEDIA_INDEX_DOMAIN,
            GET_ORDERED_FILES,
            service_data=self._service_data(),
            target=entity_target(self._config.media_index.entity_id),
        )
        response = unwrap_response(response)
        records = response.get("items") if isinstance(response, dict) else None
        if not isinstance(records, list):
            logger.warning(f"No items in ordered media index response: {response!r}")
            self._has_more = False
            return

        # A short page ends the collection, counted before dropping bad records
        if len(records) < self._page_size:
            self._has_more = False
        records = [r for r in records if isinstance(r, dict) and r.get("path")]

        if records:
            cursor = records[-1].get(self._order_by)
            if cursor is None or cursor == self._cursor:
                # Cannot advance past this page
                self._has_more = False
            self._cursor = cursor

        queued = {item.media_content_id for item in self._queue}
        added = 0
        for record in records:
            path = record["path"]
            if path in self._excluded or not is_supported(path):
                continue
            item = record_to_item(record)
            if item.media_content_id in queued:
                continue
            self._queue.append(item)
            queued.add(item.media_content_id)
            added += 1

        self._log(f"Fetched {len(records)} ordered records, queued {added}, has_more={self._has_more}")

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _serialize_data(self) -> Dict[str, Any]:
        return {
            "queue": dump_items(self._queue),
            "cursor": self._cursor,
            "has_more": self._has_more,
        }

    def _restore_data(self, data: Dict[str, Any]) -> None:
        self._queue = load_items(data.get("queue"))
        self._cursor = data.get("cursor")
        self._has_more = data.get("has_more", True)
