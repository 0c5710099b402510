"""
Folder browsing backends for the folder providers.

- MediaSource: abstract browse interface
- BrowseEntry: a file or folder returned by browse()
- LocalMediaSource: local filesystem
"""

from media_card.sources.base import BrowseEntry, MediaSource
from media_card.sources.local_source import LocalMediaSource

__all__ = [
    "BrowseEntry",
    "MediaSource",
    "LocalMediaSource",
]
