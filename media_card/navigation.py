"""
Navigation history and slideshow navigator.

NavigationHistory remembers the items that were displayed so the user can
step back and forward again; providers consult it for get_previous().
SlideshowNavigator drives a provider: it replays history when the user
moves forward after stepping back, asks the provider for new items
otherwise, skips files the index reports as missing, and runs each item
through the metadata pipeline.
"""

import logging
from typing import Any, Dict, List, Optional

from media_card.existence import ExistenceChecker
from media_card.pipeline import DisplayItem, MetadataPipeline
from media_card.providers.base import MediaItem, MediaProvider, dump_items, load_items

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100
DEFAULT_MAX_SKIPS = 5


# ============================================================================
# NavigationHistory Class
# ============================================================================


class NavigationHistory:
    """
    Bounded back/forward history of displayed items.

    Adding an item after stepping back drops the forward part, like a web
    browser. The oldest entries are discarded beyond max_size.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._items: List[MediaItem] = []
        self._index = -1

    @property
    def items(self) -> List[MediaItem]:
        return list(self._items)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[MediaItem]:
        if 0 <= self._index < len(self._items):
            return self._items[self._index]
        return None

    def __len__(self) -> int:
        return len(self._items)

    def can_go_back(self) -> bool:
        return self._index > 0

    def can_go_forward(self) -> bool:
        return self._index < len(self._items) - 1

    def add(self, item: MediaItem) -> None:
        """Append an item after the current position."""
        del self._items[self._index + 1:]
        self._items.append(item)
        overflow = len(self._items) - self._max_size
        if overflow > 0:
            del self._items[:overflow]
        self._index = len(self._items) - 1

    def previous(self) -> Optional[MediaItem]:
        """Step back one item, or return None at the start."""
        if not self.can_go_back():
            return None
        self._index -= 1
        return self._items[self._index]

    def next(self) -> Optional[MediaItem]:
        """Step forward one item, or return None at the end."""
        if not self.can_go_forward():
            return None
        self._index += 1
        return self._items[self._index]

    def clear(self) -> None:
        self._items = []
        self._index = -1

    def serialize(self) -> Dict[str, Any]:
        return {"items": dump_items(self._items), "current_index": self._index}

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        max_size: int = DEFAULT_HISTORY_SIZE,
    ) -> "NavigationHistory":
        """Rebuild a history produced by serialize()."""
        history = cls(max_size)
        if not data:
            return history
        history._items = load_items(data.get("items"))[-max_size:]
        index = data.get("current_index", len(history._items) - 1)
        history._index = min(max(index, -1), len(history._items) - 1)
        return history


# ============================================================================
# SlideshowNavigator Class
# ============================================================================


class SlideshowNavigator:
    """
    Drives a provider for a display.

    Attributes:
        provider: Active provider
        history: Shared navigation history
        current: Last displayed item
    """

    def __init__(
        self,
        provider: MediaProvider,
        pipeline: MetadataPipeline,
        history: NavigationHistory,
        existence: Optional[ExistenceChecker] = None,
        max_skips: int = DEFAULT_MAX_SKIPS,
    ):
        self.provider = provider
        self.history = history
        self._pipeline = pipeline
        self._existence = existence
        self._max_skips = max_skips
        self.current: Optional[DisplayItem] = None

    async def next(self) -> Optional[DisplayItem]:
        """
        Advance to the next item.

        Returns:
            DisplayItem, or None when the provider is exhausted

        Raises:
            ProviderError: If the provider's source keeps failing
        """
        if self.history.can_go_forward():
            return await self._show(self.history.next())

        for _ in range(self._max_skips + 1):
            item = await self.provider.get_next()
            if item is None:
                return None

            if self._existence is not None:
                exists = await self._existence.exists(item.reference)
                if exists is False:
                    logger.info(f"Skipping missing file: {item.reference}")
                    self.provider.exclude_file(item.reference)
                    continue

            self.history.add(item)
            return await self._show(item)

        logger.warning(f"Skipped {self._max_skips + 1} missing files in a row, giving up")
        return None

    async def previous(self) -> Optional[DisplayItem]:
        """
        Step back to the previous item.

        Returns:
            DisplayItem, or None at the start of history
        """
        item = await self.provider.get_previous()
        if item is None:
            return None
        return await self._show(item)

    async def _show(self, item: MediaItem) -> DisplayItem:
        self.current = await self._pipeline.build(item)
        return self.current
