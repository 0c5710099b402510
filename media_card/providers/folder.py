"""
Flat folder provider.

Plays the media files directly inside one folder, either shuffled or in
sequential date order. Subfolders are ignored; see
HierarchicalFolderProvider for recursive scanning.
"""

import logging
import random
from typing import Any, Dict, Iterable, List, Optional

from media_card.media_types import MediaKind, classify
from media_card.providers.base import (
    MediaItem,
    MediaProvider,
    ProviderError,
    dump_items,
    load_items,
)
from media_card.providers.ordering import sort_items
from media_card.sources.base import BrowseEntry, MediaSource
from media_card.sources.local_source import LocalMediaSource

logger = logging.getLogger(__name__)


# ============================================================================
# Browse Helpers
# ============================================================================


def entry_to_item(entry: BrowseEntry) -> MediaItem:
    """Convert a browse entry to a media item."""
    return MediaItem(
        media_content_id=entry.media_content_id,
        title=entry.title,
        media_class=entry.media_class,
        last_modified=entry.last_modified,
    )


def select_media(entries: Iterable[BrowseEntry], media_type: str = "all") -> List[MediaItem]:
    """
    Pick the displayable files among browse entries.

    Some backends leave media_class empty, so the extension (of the title
    first, which is the clean filename for Immich) decides when it is missing.

    Args:
        entries: Browse result
        media_type: "all", "image" or "video"

    Returns:
        Media items for matching files, in browse order
    """
    items = []
    for entry in entries:
        if entry.can_expand:
            continue

        kind = classify(entry.title or entry.media_content_id)
        if kind is MediaKind.UNSUPPORTED and entry.title:
            kind = classify(entry.media_content_id)
        if kind is MediaKind.UNSUPPORTED and entry.media_class in ("image", "video"):
            kind = MediaKind(entry.media_class)
        if kind is MediaKind.UNSUPPORTED:
            continue
        if media_type != "all" and kind.value != media_type:
            continue

        items.append(entry_to_item(entry))
    return items


# ============================================================================
# FlatFolderProvider Class
# ============================================================================


class FlatFolderProvider(MediaProvider):
    """
    Provider for the files of a single folder.

    The folder is listed once per pass. When a pass ends the folder is
    listed again (picking up new files) if folder.loop is set; otherwise
    get_next() reports exhaustion.
    """

    provider_type = "flat_folder"

    def __init__(
        self,
        config,
        client=None,
        history=None,
        source: Optional[MediaSource] = None,
        rng: Optional[random.Random] = None,
        **kwargs,
    ):
        super().__init__(config, client, history, **kwargs)
        self._source = source or LocalMediaSource()
        self._rng = rng or random.Random()
        self._folder_path: Optional[str] = config.folder.path
        self._items: List[MediaItem] = []
        self._position = 0

    async def initialize(self) -> bool:
        if not self._folder_path:
            logger.warning("Flat folder provider: no folder path configured")
            return False

        try:
            await self._load_pass()
        except ProviderError as e:
            logger.error(f"Flat folder provider failed to list {self._folder_path}: {e}")
            return False

        if not self._items:
            logger.warning(f"No media files found in {self._folder_path}")
            return False

        self._initialized = True
        return True

    async def get_next(self) -> Optional[MediaItem]:
        self._require_initialized()

        item = self._advance()
        if item is None and self._config.folder.loop:
            self._log("End of folder reached, starting a new pass")
            await self._load_pass()
            item = self._advance()
        return item

    def _advance(self) -> Optional[MediaItem]:
        while self._position < len(self._items):
            item = self._items[self._position]
            self._position += 1
            if not self._is_excluded(item):
                return item
        return None

    async def _load_pass(self) -> None:
        entries = await self._call_with_retries(
            f"Browse {self._folder_path}", self._source.browse, self._folder_path
        )
        items = select_media(entries, self._config.media_type)

        if self._config.folder.mode == "sequential":
            items = sort_items(
                items,
                self._config.folder.sequential.order_direction,
                self._config.custom_datetime_format,
            )
        else:
            self._rng.shuffle(items)

        self._items = items
        self._position = 0
        self._log(f"Loaded {len(items)} files from {self._folder_path}")

    def _serialize_data(self) -> Dict[str, Any]:
        return {
            "folder_path": self._folder_path,
            "items": dump_items(self._items),
            "position": self._position,
        }

    def _restore_data(self, data: Dict[str, Any]) -> None:
        self._folder_path = data.get("folder_path", self._folder_path)
        self._items = load_items(data.get("items"))
        self._position = data.get("position", 0)
