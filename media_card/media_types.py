"""
Media type classification.

Decides whether a media reference renders as an image or a video based on
its file extension. References may carry a Reolink-style ``|mime`` suffix,
a query string, or a ``_shared`` suffix appended by share links;
all of these are stripped before the extension is read.
"""

from enum import Enum
from typing import Optional


class MediaKind(str, Enum):
    """Rendering mode for a media item."""

    IMAGE = "image"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


VIDEO_EXTENSIONS = frozenset(["mp4", "webm", "ogg", "mov", "m4v"])
IMAGE_EXTENSIONS = frozenset(["jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "heic"])

SHARED_SUFFIX = "_shared"


def get_extension(reference: str) -> Optional[str]:
    """
    Get the lowercase extension of a media reference.

    Args:
        reference: File path or media-source URI

    Returns:
        Extension without the dot, or None if the filename has none
    """
    if not reference:
        return None

    clean = reference.split("|", 1)[0].split("?", 1)[0]
    filename = clean.rsplit("/", 1)[-1]
    # Synology share links: "clip.mp4_shared"
    if filename.endswith(SHARED_SUFFIX):
        filename = filename[: -len(SHARED_SUFFIX)]
    if "." not in filename:
        return None

    return filename.rsplit(".", 1)[1].lower() or None


def classify(reference: str) -> MediaKind:
    """
    Classify a media reference as image, video or unsupported.

    Args:
        reference: File path or media-source URI

    Returns:
        MediaKind for the reference; unknown extensions are UNSUPPORTED
    """
    ext = get_extension(reference)
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    return MediaKind.UNSUPPORTED


def is_supported(reference: str) -> bool:
    """Check whether a reference is a displayable image or video."""
    return classify(reference) is not MediaKind.UNSUPPORTED
