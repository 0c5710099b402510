"""
Remote file-existence checks.

Lets the navigator skip files that were deleted or moved after the index
last scanned them. The answer is tri-state: True/False when the index
answered, None when it could not (no index configured, call failed,
service missing). Callers treat None as "assume it exists".
"""

import logging
from typing import Optional

from media_card.api_client import (
    MEDIA_INDEX_DOMAIN,
    RemoteClient,
    entity_target,
    media_path_field,
    unwrap_response,
)
from media_card.config import MediaIndexConfig

logger = logging.getLogger(__name__)

CHECK_FILE_EXISTS = "check_file_exists"


class ExistenceChecker:
    """Asks the media index whether a file is still present."""

    def __init__(
        self,
        client: Optional[RemoteClient],
        media_index: Optional[MediaIndexConfig] = None,
    ):
        self._client = client
        self._media_index = media_index or MediaIndexConfig()

    @property
    def is_active(self) -> bool:
        return self._client is not None and self._media_index.is_active

    async def exists(self, reference: str) -> Optional[bool]:
        """
        Check whether a file exists.

        Args:
            reference: File path or media-source URI

        Returns:
            True or False when known, None when existence cannot be determined
        """
        if not self.is_active or not reference:
            return None

        try:
            response = await self._client.call_service(
                MEDIA_INDEX_DOMAIN,
                CHECK_FILE_EXISTS,
                service_data=media_path_field(reference),
                target=entity_target(self._media_index.entity_id),
            )
        except Exception as e:
            logger.warning(f"File existence check failed for {reference}: {e}")
            return None

        response = unwrap_response(response)
        if not isinstance(response, dict) or "exists" not in response:
            logger.debug(f"No existence answer for {reference}: {response!r}")
            return None
        return _as_answer(response["exists"])


def _as_answer(value) -> Optional[bool]:
    """Read a yes/no answer; anything unrecognized is unknown."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes"):
            return True
        if text in ("false", "0", "no"):
            return False
    return None
