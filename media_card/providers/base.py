"""
Provider contract.

A provider supplies media items to the slideshow one at a time. Every
source variant (single file, flat folder, hierarchical folder, media index)
implements the same contract so the navigator can switch between them
without knowing where items come from.

Design Pattern: Strategy pattern for pluggable media sources
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from media_card.api_client import ApiError, RemoteClient
from media_card.api_client import ConnectionError as ApiConnectionError
from media_card.config import CardConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Constants
# ============================================================================

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0  # seconds, doubled per attempt
REFILL_THRESHOLD = 10  # refill when fewer items remain queued

TRANSIENT_ERRORS = (ApiConnectionError, ConnectionError, TimeoutError)


# ============================================================================
# Exceptions
# ============================================================================


class ProviderError(Exception):
    """Raised when a provider cannot obtain items from its source."""

    pass


# ============================================================================
# Models
# ============================================================================


class MediaItem(BaseModel):
    """
    A single media item handed to the display.

    Items are immutable; providers and the pipeline derive new objects
    instead of modifying them.

    Attributes:
        media_content_id: Path or media-source URI used to load the media
        title: Display title (usually the filename)
        media_class: "image"/"video" as reported by a browse backend
        path: Filesystem path when known (index items)
        last_modified: Modification time reported by the source
        record: Index record delivered with the item
    """

    model_config = ConfigDict(frozen=True)

    media_content_id: str = Field(..., min_length=1)
    title: Optional[str] = None
    media_class: Optional[str] = None
    path: Optional[str] = None
    last_modified: Optional[datetime] = None
    record: Optional[Dict[str, Any]] = None

    @property
    def reference(self) -> str:
        """Path used for metadata extraction and existence checks."""
        return self.path or self.media_content_id


class ProviderState(BaseModel):
    """Serialized provider state for resuming after a restart."""

    provider_type: str = Field(..., description="Provider variant that produced the state")
    is_paused: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)


def dump_items(items: List[MediaItem]) -> List[Dict[str, Any]]:
    """Serialize items to JSON-compatible dicts."""
    return [item.model_dump(mode="json", exclude_none=True) for item in items]


def load_items(raw: Optional[List[Dict[str, Any]]]) -> List[MediaItem]:
    """Rebuild items serialized with dump_items."""
    return [MediaItem.model_validate(entry) for entry in raw or []]


# ============================================================================
# MediaProvider Class
# ============================================================================


class MediaProvider(ABC):
    """
    Abstract base class for media providers.

    Subclasses implement initialize(), get_next() and the state hooks
    _serialize_data() / _restore_data(). Backward navigation is delegated to
    the shared NavigationHistory, so providers only track what they need to
    continue forward.

    Attributes:
        provider_type: Identifier stored in serialized state
        is_paused: Whether background activity is suspended
        is_initialized: Whether initialize() or restore() succeeded
    """

    provider_type = "base"

    def __init__(
        self,
        config: CardConfig,
        client: Optional[RemoteClient] = None,
        history: Optional[Any] = None,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_BASE_DELAY,
    ):
        """
        Initialize the provider.

        Args:
            config: Card configuration
            client: Remote client for index services
            history: Shared NavigationHistory used by get_previous()
            max_retries: Attempts per remote call before giving up
            retry_delay: Base backoff delay in seconds
        """
        self._config = config
        self._client = client
        self._history = history
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

        self._initialized = False
        self._paused = False
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._excluded: Set[str] = set()

        self._refill_task: Optional[asyncio.Task] = None
        self._refill_error: Optional[ProviderError] = None

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> CardConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Prepare the provider (load the first items, start scanning).

        Returns:
            True if the provider can supply items, False otherwise
        """
        pass

    @abstractmethod
    async def get_next(self) -> Optional[MediaItem]:
        """
        Get the next item.

        Returns:
            The next MediaItem, or None when a finite source is exhausted

        Raises:
            ProviderError: If the source keeps failing after retries
            RuntimeError: If called before initialize()
        """
        pass

    async def get_previous(self) -> Optional[MediaItem]:
        """
        Get the previous item from the shared navigation history.

        Returns:
            The previous MediaItem, or None at the start of history
        """
        if self._history is None:
            return None
        return self._history.previous()

    def pause(self) -> None:
        """Suspend background scanning and prefetching. Idempotent."""
        if self._paused:
            return
        self._paused = True
        self._resume_event.clear()
        self._log("Paused")
        self._on_pause()

    def resume(self) -> None:
        """Restart background activity suspended by pause(). Idempotent."""
        if not self._paused:
            return
        self._paused = False
        self._resume_event.set()
        self._log("Resumed")
        self._on_resume()

    def serialize(self) -> ProviderState:
        """
        Capture the provider state.

        Returns:
            ProviderState that restore() accepts on a fresh instance
        """
        data = self._serialize_data()
        data["excluded"] = sorted(self._excluded)
        return ProviderState(
            provider_type=self.provider_type,
            is_paused=self._paused,
            data=data,
        )

    def restore(self, state: ProviderState) -> None:
        """
        Restore state captured by serialize().

        A restored provider counts as initialized; background work resumes
        on the next get_next() or resume().

        Args:
            state: Previously serialized state

        Raises:
            ValueError: If the state belongs to another provider type
        """
        if state.provider_type != self.provider_type:
            raise ValueError(
                f"Cannot restore {state.provider_type} state into {self.provider_type} provider"
            )

        self._restore_data(state.data)
        self._excluded = set(state.data.get("excluded", []))
        self._paused = state.is_paused
        if self._paused:
            self._resume_event.clear()
        else:
            self._resume_event.set()
        self._initialized = True

    def exclude_file(self, path: str) -> None:
        """
        Stop serving a file (e.g. after it was found missing).

        Args:
            path: Item reference or media_content_id to exclude
        """
        self._excluded.add(path)
        self._log(f"Excluded file: {path}")

    async def close(self) -> None:
        """Cancel background work."""
        task = self._refill_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._refill_task = None

    # -------------------------------------------------------------------------
    # Subclass Hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _serialize_data(self) -> Dict[str, Any]:
        """Return JSON-compatible provider-specific state."""
        pass

    @abstractmethod
    def _restore_data(self, data: Dict[str, Any]) -> None:
        """Load provider-specific state produced by _serialize_data()."""
        pass

    def _on_pause(self) -> None:
        pass

    def _on_resume(self) -> None:
        pass

    async def _refill(self) -> None:
        """Fetch more items into the queue (background refill body)."""
        pass

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _log(self, message: str) -> None:
        """Emit a provider diagnostic when debug_mode is on."""
        if self._config.debug_mode:
            logger.debug(f"[{self.provider_type}] {message}")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(f"{type(self).__name__} used before initialize()")

    def _is_excluded(self, item: MediaItem) -> bool:
        return item.reference in self._excluded or item.media_content_id in self._excluded

    def _history_ids(self) -> Set[str]:
        if self._history is None:
            return set()
        return {item.media_content_id for item in self._history.items}

    async def _call_with_retries(
        self,
        operation: str,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Await a source call, retrying transient failures with backoff.

        Args:
            operation: Description used in log and error messages
            func: Coroutine function to call

        Returns:
            The call result

        Raises:
            ProviderError: After max_retries transient failures, or at once
                for non-transient failures
        """
        last_error: Optional[BaseException] = None

        for attempt in range(self._max_retries):
            try:
                return await func(*args, **kwargs)
            except TRANSIENT_ERRORS as e:
                last_error = e
                logger.warning(
                    f"{operation} failed (attempt {attempt + 1}/{self._max_retries}): {e}"
                )
                if attempt < self._max_retries - 1:
                    await asyncio.sleep(self._retry_delay * 2 ** attempt)
            except (ApiError, OSError, ValueError) as e:
                raise ProviderError(f"{operation} failed: {e}") from e

        raise ProviderError(
            f"{operation} failed after {self._max_retries} attempts: {last_error}"
        )

    def _spawn_refill(self) -> None:
        """Start a background refill unless paused or one is running."""
        if self._paused:
            return
        if self._refill_task is not None and not self._refill_task.done():
            return
        self._refill_error = None
        self._refill_task = asyncio.create_task(self._background_refill())

    async def _background_refill(self) -> None:
        try:
            await self._refill()
        except ProviderError as e:
            self._refill_error = e
            logger.warning(f"Background refill failed for {self.provider_type}: {e}")

    async def _await_refill(self) -> None:
        """Wait for an in-flight background refill, if any."""
        task = self._refill_task
        if task is not None and not task.done():
            await task

    @property
    def _refill_running(self) -> bool:
        return self._refill_task is not None and not self._refill_task.done()
