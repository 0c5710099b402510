"""
Display item pipeline.

Turns a provider item into what the display needs: the rendering mode and
the full metadata (path extraction first, then the index record laid over
it). Items from index providers carry their record already and skip the
remote round trip.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict

from media_card.config import CardConfig, DateTimeFormatConfig
from media_card.media_types import MediaKind, classify
from media_card.metadata.enricher import MetadataEnricher
from media_card.metadata.models import EnrichedMetadata
from media_card.metadata.path_parser import extract_metadata
from media_card.providers.base import MediaItem

logger = logging.getLogger(__name__)


class DisplayItem(BaseModel):
    """A media item ready for display."""

    model_config = ConfigDict(frozen=True)

    item: MediaItem
    kind: MediaKind
    metadata: EnrichedMetadata


def classify_item(item: MediaItem) -> MediaKind:
    """
    Determine the rendering mode of an item.

    The reference decides first, then the title (clean filename for
    Immich), then the media_class reported by the browse backend.
    """
    kind = classify(item.reference)
    if kind is MediaKind.UNSUPPORTED and item.title:
        kind = classify(item.title)
    if kind is MediaKind.UNSUPPORTED and item.media_class in ("image", "video"):
        kind = MediaKind(item.media_class)
    return kind


class MetadataPipeline:
    """Runs extraction and enrichment for provider items."""

    def __init__(
        self,
        enricher: MetadataEnricher,
        format_config: Optional[DateTimeFormatConfig] = None,
    ):
        self._enricher = enricher
        self._format_config = format_config

    @classmethod
    def from_config(cls, config: CardConfig, client=None) -> "MetadataPipeline":
        """Build a pipeline for a card configuration."""
        return cls(
            MetadataEnricher(client, config.media_index),
            config.custom_datetime_format,
        )

    async def build(self, item: MediaItem) -> DisplayItem:
        """
        Build the display item for a provider item.

        Args:
            item: Item returned by a provider

        Returns:
            DisplayItem with rendering mode and merged metadata
        """
        extracted = extract_metadata(item.reference, self._format_config)
        if item.record:
            metadata = MetadataEnricher.from_index_record(extracted, item.record)
        else:
            metadata = await self._enricher.enrich(item.reference, extracted)

        return DisplayItem(item=item, kind=classify_item(item), metadata=metadata)
