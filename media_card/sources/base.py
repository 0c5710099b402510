"""
Abstract base class for folder browsing backends.

Folder providers discover media by browsing a hierarchy one level at a
time. Each backend returns the direct children of a location; the
providers decide how deep to go and in which order.

Design Pattern: Strategy pattern for pluggable browse backends
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass
class BrowseEntry:
    """
    A child returned by a browse call.

    Attributes:
        media_content_id: Identifier to load (file) or browse (folder)
        title: Display name
        can_expand: True for folders
        media_class: "image", "video", "directory" or None if unknown
        last_modified: Modification time, if the backend reports one
    """
    media_content_id: str
    title: str
    can_expand: bool = False
    media_class: Optional[str] = None
    last_modified: Optional[datetime] = None

    @property
    def name(self) -> str:
        """Last path segment of the identifier (falls back to title)."""
        return self.media_content_id.rstrip('/').rsplit('/', 1)[-1] or self.title


class MediaSource(ABC):
    """
    Abstract folder browsing backend.

    Methods:
        browse(): List the direct children of a location
        test_connection(): Validate access to the backend

    Usage:
        >>> source = LocalMediaSource()
        >>> entries = await source.browse("/media/Photos")
        >>> folders = [e for e in entries if e.can_expand]
    """

    @abstractmethod
    async def browse(self, location: str) -> List[BrowseEntry]:
        """
        List the direct children of a location.

        Args:
            location: Folder identifier

        Returns:
            Child entries (files and folders)

        Raises:
            FileNotFoundError: If the location does not exist
            ConnectionError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def test_connection(self) -> Tuple[bool, str]:
        """
        Test access to the backend.

        Returns:
            Tuple of (success, message)
        """
        pass
