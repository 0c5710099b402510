"""
Slideshow runner.

Builds the provider, metadata pipeline and navigator from the application
configuration and advances the slideshow on a fixed interval until the
provider is exhausted, the requested number of items was shown, or a
shutdown signal arrives. The session is saved on exit and restored on the
next start.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Callable, Optional

from media_card import __version__
from media_card import state_store
from media_card.api_client import AuthenticationError, HomeAssistantClient, RemoteClient
from media_card.config import AppConfig, ConfigValidationError
from media_card.existence import ExistenceChecker
from media_card.navigation import NavigationHistory, SlideshowNavigator
from media_card.pipeline import DisplayItem, MetadataPipeline
from media_card.providers import (
    MediaProvider,
    ProviderError,
    create_provider,
    select_provider_class,
)
from media_card.sources.local_source import LocalMediaSource

DEFAULT_INTERVAL = 5.0  # seconds between items


# ============================================================================
# Logging Setup
# ============================================================================


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the slideshow.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("media_card")


# ============================================================================
# SlideshowRunner Class
# ============================================================================


class SlideshowRunner:
    """
    Runs a slideshow session.

    Handles:
    - Provider selection and initialization (or restore from saved state)
    - Advancing through items on an interval
    - Graceful shutdown on SIGINT/SIGTERM
    - Saving the session on exit

    Exit codes:
        0: Finished normally
        1: Configuration error
        2: Authentication failed
        3: Provider could not be initialized
        4: Provider failed while running
    """

    def __init__(
        self,
        config: AppConfig,
        state_path: Optional[Path] = None,
        fresh: bool = False,
        media_root: Optional[str] = None,
        on_item: Optional[Callable[[DisplayItem], None]] = None,
    ):
        """
        Initialize the runner.

        Args:
            config: Application configuration
            state_path: Session state file (defaults to the data directory)
            fresh: Ignore saved state and start over
            media_root: Directory that /media paths are resolved against
            on_item: Called with every displayed item
        """
        self.config = config
        self.logger = setup_logging(config.log_level)
        self._state_path = state_path
        self._fresh = fresh
        self._media_root = media_root
        self._on_item = on_item
        self._shutdown_event = asyncio.Event()

        self._client: Optional[RemoteClient] = None
        self.provider: Optional[MediaProvider] = None
        self.history = NavigationHistory()
        self.navigator: Optional[SlideshowNavigator] = None

    async def run(self, count: Optional[int] = None, interval: float = DEFAULT_INTERVAL) -> int:
        """
        Run the slideshow.

        Args:
            count: Stop after this many items (None = until exhausted)
            interval: Seconds to wait between items

        Returns:
            Exit code
        """
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_shutdown)

        try:
            self.config.validate()
        except ConfigValidationError as e:
            self.logger.error(f"Configuration error: {e}")
            return 1

        card = self.config.card
        self.logger.info(f"Starting media card slideshow ({__version__})")
        self.logger.info(f"Source: {card.media_source_type}")

        try:
            if self.config.is_configured:
                self._client = HomeAssistantClient(
                    server_url=self.config.server_url,
                    access_token=self.config.access_token,
                    timeout=self.config.request_timeout,
                )

            saved = self._load_session()
            if saved is not None:
                self.history = NavigationHistory.from_dict(saved.history)

            self.provider = create_provider(
                card,
                client=self._client,
                history=self.history,
                source=LocalMediaSource(self._media_root),
            )

            if saved is not None and self._restore(saved):
                self.logger.info(f"Restored saved session from {saved.saved_at.isoformat()}")
            elif not await self.provider.initialize():
                self.logger.error("Provider could not be initialized")
                return 3

            self.navigator = SlideshowNavigator(
                self.provider,
                MetadataPipeline.from_config(card, self._client),
                self.history,
                existence=ExistenceChecker(self._client, card.media_index),
            )
            return await self._play(count, interval)

        except AuthenticationError as e:
            self.logger.error(f"Authentication failed: {e}")
            return 2

        except ProviderError as e:
            self.logger.error(f"Provider error: {e}")
            return 4

        finally:
            await self._shutdown()

    def request_shutdown(self) -> None:
        """Request graceful shutdown of the slideshow."""
        self._shutdown_event.set()

    def _load_session(self) -> Optional[state_store.SessionState]:
        """Load the saved session if it matches the configured provider."""
        if self._fresh:
            return None

        saved = state_store.load(self._state_path)
        if saved is None:
            return None

        expected = select_provider_class(self.config.card).provider_type
        if saved.provider.provider_type != expected:
            self.logger.info("Saved session belongs to another source, starting fresh")
            return None
        return saved

    def _restore(self, saved: state_store.SessionState) -> bool:
        try:
            self.provider.restore(saved.provider)
        except ValueError as e:
            self.logger.warning(f"Saved session is unusable, starting fresh: {e}")
            self.history.clear()
            return False
        self.provider.resume()
        return True

    async def _play(self, count: Optional[int], interval: float) -> int:
        shown = 0
        while not self._shutdown_event.is_set():
            item = await self.navigator.next()
            if item is None:
                self.logger.info("No more media to show")
                break

            shown += 1
            self.logger.debug(f"Showing {item.item.reference} ({item.kind.value})")
            if self._on_item is not None:
                self._on_item(item)

            if count is not None and shown >= count:
                break

            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
                # Shutdown was requested
                break
            except asyncio.TimeoutError:
                pass

        self.logger.info(f"Displayed {shown} items")
        return 0

    async def _shutdown(self) -> None:
        if self.provider is not None:
            # Stop background scans before taking the snapshot
            await self.provider.close()
            if self.provider.is_initialized:
                try:
                    state_store.save(
                        state_store.make_state(self.provider, self.history),
                        self._state_path,
                    )
                except OSError as e:
                    self.logger.warning(f"Failed to save session state: {e}")

        if self._client is not None:
            await self._client.close()

        self.logger.info("Slideshow stopped")


# ============================================================================
# Main Entry Point
# ============================================================================


def run_slideshow(
    config: Optional[AppConfig] = None,
    count: Optional[int] = None,
    interval: float = DEFAULT_INTERVAL,
    **kwargs,
) -> int:
    """
    Run a slideshow session.

    Args:
        config: Application configuration (loaded from disk if omitted)
        count: Stop after this many items
        interval: Seconds between items
        **kwargs: Passed to SlideshowRunner

    Returns:
        Exit code
    """
    runner = SlideshowRunner(config or AppConfig(), **kwargs)
    return asyncio.run(runner.run(count=count, interval=interval))


if __name__ == "__main__":
    sys.exit(run_slideshow())
