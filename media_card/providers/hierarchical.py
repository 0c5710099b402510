"""
Hierarchical folder provider.

Scans a folder tree one folder at a time and feeds a playback queue while
the scan is still running. Pending folders form a frontier queue:

- random mode walks the tree breadth-first with shuffled subfolders,
  samples files into the queue at random positions, and keeps scanning in
  a background task after the base folder is done
- sequential mode walks depth-first with date-sorted subfolders and stops
  once slideshow_window items are queued; the scan continues from the saved
  frontier when the queue runs dry

Shown items are remembered so random playback does not repeat until
everything has been seen; then the oldest 70% are forgotten.
"""

import asyncio
import logging
import math
import random
from typing import Any, Dict, List, Optional, Tuple

from media_card.providers.base import (
    REFILL_THRESHOLD,
    MediaItem,
    MediaProvider,
    ProviderError,
    dump_items,
    load_items,
)
from media_card.providers.folder import select_media
from media_card.providers.ordering import sort_folders, sort_items
from media_card.sources.base import MediaSource
from media_card.sources.local_source import LocalMediaSource

logger = logging.getLogger(__name__)

EXCLUDED_ROOT_FOLDERS = frozenset(["_Junk", "_Edit"])
SHOWN_KEEP_RATIO = 0.3


class HierarchicalFolderProvider(MediaProvider):
    """
    Provider for a folder tree.

    Attributes:
        is_scanning: Whether the background scan is running
        scan_complete: Whether every folder in range has been visited
    """

    provider_type = "hierarchical_folder"

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

        folder = config.folder
        self._root: Optional[str] = folder.path
        self._sequential = folder.mode == "sequential"
        self._direction = folder.sequential.order_direction
        self._scan_depth: Optional[int] = folder.scan_depth if folder.recursive else 0
        self._window = config.slideshow_window

        self._queue: List[MediaItem] = []
        self._shown: Dict[str, None] = {}  # insertion-ordered set
        self._folders: Dict[str, List[MediaItem]] = {}
        self._frontier: List[Tuple[str, int]] = []
        # Folders taken off the frontier whose browse has not returned yet
        self._in_flight: List[Tuple[str, int]] = []

    @property
    def is_scanning(self) -> bool:
        return self._refill_running

    @property
    def scan_complete(self) -> bool:
        return not self._frontier and not self._in_flight

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    async def initialize(self) -> bool:
        if not self._root:
            logger.warning("Hierarchical folder provider: no folder path configured")
            return False

        self._frontier = [(self._root, 0)]
        try:
            # Base folder first so playback can start before the full scan
            await self._scan_next_folder()
        except ProviderError as e:
            logger.error(f"Hierarchical folder provider failed to scan {self._root}: {e}")
            return False

        if self._sequential:
            await self._scan_pending(wait_for_resume=False)

        if not self._queue and not self._frontier:
            logger.warning(f"No media files found under {self._root}")
            return False

        self._initialized = True
        if self._frontier and not self._sequential:
            self._spawn_refill()
        return True

    async def get_next(self) -> Optional[MediaItem]:
        self._require_initialized()

        if self._frontier and not self._sequential:
            self._spawn_refill()

        item = self._take()
        if item is None and not self.scan_complete:
            await self._continue_scan()
            item = self._take()

        if item is None:
            item = await self._start_new_cycle()

        if item is not None and not self._sequential and self.scan_complete:
            if len(self._queue) < REFILL_THRESHOLD:
                self._fill_from_folders()
        return item

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def _take(self) -> Optional[MediaItem]:
        while self._queue:
            item = self._queue.pop(0)
            if self._is_excluded(item):
                continue
            if not self._sequential and item.media_content_id in self._shown:
                continue
            self._shown[item.media_content_id] = None
            return item
        return None

    async def _continue_scan(self) -> None:
        """Scan in the foreground until something is queued."""
        if self._sequential:
            await self._scan_pending(wait_for_resume=False)
            return

        while not self._queue and self._frontier:
            try:
                await self._scan_next_folder()
            except ProviderError as e:
                logger.warning(f"Skipping folder during scan: {e}")

        if not self._queue and self._refill_running and not self._paused:
            await self._await_refill()

    async def _start_new_cycle(self) -> Optional[MediaItem]:
        if self._sequential:
            if not self._config.folder.loop:
                return None
            self._log("Sequential scan finished, restarting from the top")
            self._shown.clear()
            self._folders.clear()
            self._frontier = [(self._root, 0)]
            await self._scan_pending(wait_for_resume=False)
            return self._take()

        self._fill_from_folders()
        item = self._take()
        if item is None and self._shown:
            self._age_out_shown()
            self._fill_from_folders()
            item = self._take()
        return item

    def _fill_from_folders(self) -> None:
        """Queue unshown files from discovered folders, favoring priority folders."""
        queued = {item.media_content_id for item in self._queue}
        candidates = []
        for folder_path, files in self._folders.items():
            weight = self._weight_multiplier(folder_path)
            for item in files:
                if item.media_content_id in self._shown or item.media_content_id in queued:
                    continue
                if self._is_excluded(item):
                    continue
                # Weighted sampling without replacement
                candidates.append((self._rng.random() ** (1.0 / weight), item))

        candidates.sort(key=lambda pair: pair[0], reverse=True)
        room = max(self._window - len(self._queue), 0)
        added = [item for _, item in candidates[:room]]
        self._queue.extend(added)
        self._log(f"Refilled {len(added)} items from {len(self._folders)} folders")

    def _age_out_shown(self) -> None:
        # Free at least one item
        keep = min(math.ceil(len(self._shown) * SHOWN_KEEP_RATIO), len(self._shown) - 1)
        kept = list(self._shown)[-keep:] if keep else []
        self._shown = dict.fromkeys(kept)
        self._log(f"Aged out shown items, {len(kept)} kept")

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    async def _refill(self) -> None:
        await self._scan_pending(wait_for_resume=True)

    async def _scan_pending(self, wait_for_resume: bool) -> None:
        """
        Scan pending folders until none are left.

        Sequential scans stop early once slideshow_window items are queued.
        Background scans block while the provider is paused.
        """
        while self._frontier:
            if wait_for_resume:
                await self._resume_event.wait()
            if self._sequential and len(self._queue) >= self._window:
                self._log(f"Queue reached {self._window} items, scan suspended")
                return
            try:
                await self._scan_next_folder()
            except ProviderError as e:
                logger.warning(f"Skipping folder during scan: {e}")

        self._log(f"Scan complete: {len(self._folders)} folders")

    async def _scan_next_folder(self) -> None:
        pending = self._frontier.pop(0)
        location, depth = pending
        self._in_flight.append(pending)
        try:
            entries = await self._call_with_retries(
                f"Browse {location}", self._source.browse, location
            )
        except asyncio.CancelledError:
            self._frontier.insert(0, pending)
            raise
        finally:
            self._in_flight.remove(pending)

        files = select_media(entries, self._config.media_type)
        self._folders[location] = files

        subfolders = [entry for entry in entries if entry.can_expand]
        if location == self._root:
            subfolders = [e for e in subfolders if e.name not in EXCLUDED_ROOT_FOLDERS]

        if self._sequential:
            self._enqueue_sequential(files)
        else:
            self._enqueue_random(location, files)

        if subfolders and (self._scan_depth is None or depth < self._scan_depth):
            if self._sequential:
                ordered = sort_folders(subfolders, self._direction)
                self._frontier[0:0] = [(e.media_content_id, depth + 1) for e in ordered]
            else:
                self._rng.shuffle(subfolders)
                self._frontier.extend((e.media_content_id, depth + 1) for e in subfolders)

        self._log(
            f"Scanned {location} (depth {depth}): {len(files)} files, "
            f"{len(subfolders)} subfolders, queue {len(self._queue)}"
        )

    def _enqueue_sequential(self, files: List[MediaItem]) -> None:
        ordered = sort_items(files, self._direction, self._config.custom_datetime_format)
        for item in ordered:
            if item.media_content_id not in self._shown:
                self._queue.append(item)

    def _enqueue_random(self, location: str, files: List[MediaItem]) -> None:
        probability = min(self._file_probability() * self._weight_multiplier(location), 1.0)
        queued = {item.media_content_id for item in self._queue}
        for item in files:
            if len(self._queue) >= self._window:
                break
            if item.media_content_id in self._shown or item.media_content_id in queued:
                continue
            if self._rng.random() < probability:
                self._queue.insert(self._rng.randint(0, len(self._queue)), item)

    def _file_probability(self) -> float:
        """
        Per-file sampling probability for random mode.

        Without an estimated library size every file is queued (bounded by
        slideshow_window). With one, the probability targets a full window
        and is boosted while the queue is still short.
        """
        total = self._config.folder.estimated_total_photos
        if not total:
            return 1.0

        size = len(self._queue)
        if size < 10:
            boost = 10.0
        elif size < 30:
            boost = 3.0
        elif size < 50:
            boost = 1.5
        else:
            boost = 1.0
        return min(self._window / total * boost, 1.0)

    def _weight_multiplier(self, folder_path: str) -> float:
        multiplier = 1.0
        for priority in self._config.folder.priority_folders:
            if priority.path in folder_path:
                multiplier = max(multiplier, priority.weight_multiplier)
        return multiplier

    # -------------------------------------------------------------------------
    # Pause / State
    # -------------------------------------------------------------------------

    def _on_resume(self) -> None:
        if self._initialized and self._frontier and not self._sequential:
            self._spawn_refill()

    def _serialize_data(self) -> Dict[str, Any]:
        return {
            "root": self._root,
            "queue": dump_items(self._queue),
            "shown": list(self._shown),
            "folders": {path: dump_items(files) for path, files in self._folders.items()},
            "frontier": [
                [location, depth] for location, depth in self._in_flight + self._frontier
            ],
        }

    def _restore_data(self, data: Dict[str, Any]) -> None:
        self._root = data.get("root", self._root)
        self._queue = load_items(data.get("queue"))
        self._shown = dict.fromkeys(data.get("shown", []))
        self._folders = {
            path: load_items(files) for path, files in (data.get("folders") or {}).items()
        }
        self._frontier = [(location, depth) for location, depth in data.get("frontier", [])]
        self._in_flight = []
