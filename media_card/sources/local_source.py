"""
Local filesystem browse backend.

Implements MediaSource for local directories. Directory listing runs in the
default executor so large folders do not block the event loop.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from media_card.media_types import MediaKind, classify
from media_card.sources.base import BrowseEntry, MediaSource

MEDIA_SOURCE_PREFIX = "media-source://media_source"


class LocalMediaSource(MediaSource):
    """
    Local filesystem browse backend.

    Accepts plain paths and local media-source URIs
    ("media-source://media_source/media/Photos" maps to "/media/Photos").
    Hidden entries are skipped.

    Example:
        >>> source = LocalMediaSource()
        >>> entries = await source.browse("/media/Photos")
    """

    def __init__(self, root: Optional[str] = None):
        """
        Initialize LocalMediaSource.

        Args:
            root: Optional directory that "/media" paths are resolved
                against (e.g. a mounted copy of the media share)
        """
        self._root = Path(root).expanduser() if root else None

    def _resolve(self, location: str) -> Path:
        if location.startswith(MEDIA_SOURCE_PREFIX):
            location = location[len(MEDIA_SOURCE_PREFIX):] or "/"
        if self._root is not None:
            return self._root / location.lstrip("/")
        return Path(location).expanduser()

    def _list(self, location: str) -> List[BrowseEntry]:
        folder = self._resolve(location)

        if not folder.exists():
            raise FileNotFoundError(f"Path does not exist: {location}")

        if not folder.is_dir():
            raise ValueError(f"Path is not a directory: {location}")

        base = location.rstrip("/")
        entries = []
        for child in sorted(folder.iterdir()):
            if child.name.startswith("."):
                continue
            try:
                is_dir = child.is_dir()
                mtime = datetime.fromtimestamp(child.stat().st_mtime)
            except (PermissionError, OSError):
                # Skip entries we can't access
                continue

            if is_dir:
                media_class = "directory"
            else:
                kind = classify(child.name)
                media_class = None if kind is MediaKind.UNSUPPORTED else kind.value

            entries.append(
                BrowseEntry(
                    media_content_id=f"{base}/{child.name}",
                    title=child.name,
                    can_expand=is_dir,
                    media_class=media_class,
                    last_modified=mtime,
                )
            )

        return entries

    async def browse(self, location: str) -> List[BrowseEntry]:
        """
        List the direct children of a local directory.

        Args:
            location: Directory path or local media-source URI

        Returns:
            Child entries; identifiers keep the form of the location

        Raises:
            FileNotFoundError: If location doesn't exist
            ValueError: If location is not a directory
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._list, location)

    def test_connection(self) -> Tuple[bool, str]:
        """
        Test that the local filesystem (or configured root) is accessible.

        Returns:
            Tuple of (success, message)
        """
        if self._root is not None and not self._root.is_dir():
            return False, f"Media root not found: {self._root}"
        return True, "Local filesystem access available"
