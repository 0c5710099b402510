"""
Media providers.

All providers implement the MediaProvider contract (initialize, get_next,
get_previous, pause, resume, serialize, restore).

Providers:
- SingleMediaProvider: one fixed image or video
- FlatFolderProvider: files of one folder
- HierarchicalFolderProvider: folder tree with background scanning
- MediaIndexProvider: random items from the media index
- SequentialMediaIndexProvider: ordered, cursor-paginated index items

Usage:
    >>> provider = create_provider(card_config, client=client, history=history)
    >>> if await provider.initialize():
    ...     item = await provider.get_next()
"""

import logging
from typing import Optional

from media_card.api_client import RemoteClient
from media_card.config import CardConfig
from media_card.providers.base import (
    MediaItem,
    MediaProvider,
    ProviderError,
    ProviderState,
)
from media_card.providers.folder import FlatFolderProvider
from media_card.providers.hierarchical import HierarchicalFolderProvider
from media_card.providers.media_index import MediaIndexProvider
from media_card.providers.sequential import SequentialMediaIndexProvider
from media_card.providers.single import SingleMediaProvider
from media_card.sources.base import MediaSource

logger = logging.getLogger(__name__)

PROVIDER_TYPES = {
    cls.provider_type: cls
    for cls in (
        SingleMediaProvider,
        FlatFolderProvider,
        HierarchicalFolderProvider,
        MediaIndexProvider,
        SequentialMediaIndexProvider,
    )
}


def select_provider_class(config: CardConfig) -> type:
    """
    Choose the provider variant for a card configuration.

    Folder sources use the media index for discovery when it is active and
    use_media_index_for_discovery is on; otherwise they browse the folder,
    recursively unless folder.recursive is off (sequential browsing always
    uses the hierarchical scanner to get ordered subfolders).

    Args:
        config: Card configuration

    Returns:
        MediaProvider subclass

    Raises:
        ValueError: If media_source_type is unknown
    """
    source_type = config.media_source_type

    if source_type == "single_media":
        return SingleMediaProvider

    if source_type == "media_index":
        if config.folder.mode == "sequential":
            return SequentialMediaIndexProvider
        return MediaIndexProvider

    if source_type == "folder":
        folder = config.folder
        use_index = folder.use_media_index_for_discovery and config.media_index.is_active
        if use_index:
            if folder.mode == "sequential":
                return SequentialMediaIndexProvider
            return MediaIndexProvider
        if folder.recursive or folder.mode == "sequential":
            return HierarchicalFolderProvider
        return FlatFolderProvider

    raise ValueError(f"Unknown media_source_type: {source_type}")


def create_provider(
    config: CardConfig,
    client: Optional[RemoteClient] = None,
    history=None,
    source: Optional[MediaSource] = None,
    **kwargs,
) -> MediaProvider:
    """
    Create the provider for a card configuration.

    Args:
        config: Card configuration
        client: Remote client for index services
        history: Shared NavigationHistory
        source: Browse backend for folder providers
        **kwargs: Passed to the provider (max_retries, retry_delay, rng)

    Returns:
        Uninitialized provider
    """
    provider_class = select_provider_class(config)
    logger.debug(f"Selected {provider_class.__name__} for {config.media_source_type}")

    if provider_class in (FlatFolderProvider, HierarchicalFolderProvider):
        return provider_class(config, client, history, source=source, **kwargs)
    kwargs.pop("rng", None)
    return provider_class(config, client, history, **kwargs)


__all__ = [
    "MediaItem",
    "MediaProvider",
    "ProviderError",
    "ProviderState",
    "SingleMediaProvider",
    "FlatFolderProvider",
    "HierarchicalFolderProvider",
    "MediaIndexProvider",
    "SequentialMediaIndexProvider",
    "PROVIDER_TYPES",
    "create_provider",
    "select_provider_class",
]
