"""Single media item provider."""

from typing import Any, Dict, Optional

from media_card.metadata.path_parser import extract_filename, normalize_path
from media_card.providers.base import MediaItem, MediaProvider


class SingleMediaProvider(MediaProvider):
    """
    Provider for a single image or video.

    get_next() and get_previous() always return the configured item, so a
    display can refresh it indefinitely (e.g. a camera snapshot).
    """

    provider_type = "single_media"

    def __init__(self, config, *args, **kwargs):
        super().__init__(config, *args, **kwargs)
        self._media_path: Optional[str] = config.single_media.path
        self._item: Optional[MediaItem] = None

    async def initialize(self) -> bool:
        if not self._media_path:
            self._log("No media path configured")
            return False

        self._item = MediaItem(
            media_content_id=self._media_path,
            title=extract_filename(normalize_path(self._media_path)),
        )
        self._initialized = True
        return True

    async def get_next(self) -> Optional[MediaItem]:
        self._require_initialized()
        return self._item

    async def get_previous(self) -> Optional[MediaItem]:
        self._require_initialized()
        return self._item

    def _serialize_data(self) -> Dict[str, Any]:
        return {
            "media_path": self._media_path,
            "item": self._item.model_dump(mode="json", exclude_none=True) if self._item else None,
        }

    def _restore_data(self, data: Dict[str, Any]) -> None:
        self._media_path = data.get("media_path")
        item = data.get("item")
        self._item = MediaItem.model_validate(item) if item else None
