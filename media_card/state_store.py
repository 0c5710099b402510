"""
Session state storage.

Persists the provider state and navigation history between runs so a
restarted slideshow resumes where it stopped. Stored as a single JSON file
in the platform data directory (or an explicit path).
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from media_card.config import get_default_state_path
from media_card.providers.base import MediaProvider, ProviderState

logger = logging.getLogger(__name__)


class SessionState(BaseModel):
    """Saved slideshow session."""

    provider: ProviderState = Field(..., description="Serialized provider")
    history: Dict[str, Any] = Field(
        default_factory=dict, description="Serialized navigation history"
    )
    saved_at: datetime = Field(..., description="When the state was saved")


def _resolve(path: Optional[Path]) -> Path:
    state_file = Path(path) if path else get_default_state_path()
    state_file.parent.mkdir(parents=True, exist_ok=True)
    return state_file


def make_state(provider: MediaProvider, history=None) -> SessionState:
    """
    Capture the current session.

    Args:
        provider: Active provider
        history: NavigationHistory, if any

    Returns:
        SessionState stamped with the current time
    """
    return SessionState(
        provider=provider.serialize(),
        history=history.serialize() if history is not None else {},
        saved_at=datetime.now(timezone.utc),
    )


def save(state: SessionState, path: Optional[Path] = None) -> Path:
    """
    Save a session state to disk.

    Args:
        state: State to save
        path: Target file (defaults to the platform data directory)

    Returns:
        Path to the saved file

    Raises:
        OSError: If the file cannot be written
    """
    state_file = _resolve(path)
    state_file.write_text(state.model_dump_json(indent=2), encoding="utf-8")
    logger.debug("Saved %s session state -> %s", state.provider.provider_type, state_file)
    return state_file


def load(path: Optional[Path] = None) -> Optional[SessionState]:
    """
    Load the saved session state.

    Returns:
        SessionState if found and parseable, None otherwise
    """
    state_file = _resolve(path)
    if not state_file.exists():
        return None

    try:
        return SessionState.model_validate_json(state_file.read_text(encoding="utf-8"))
    except Exception as e:
        logger.warning("Failed to load session state: %s", e)
        return None


def delete(path: Optional[Path] = None) -> bool:
    """
    Delete the saved session state.

    Returns:
        True if a file was deleted, False if none existed
    """
    state_file = _resolve(path)
    if state_file.exists():
        state_file.unlink()
        logger.debug("Deleted session state")
        return True
    return False
