"""
Unit tests for session state storage.
"""

import pytest

from media_card import state_store
from media_card.navigation import NavigationHistory
from media_card.providers.base import MediaItem
from media_card.providers.single import SingleMediaProvider


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "state" / "session.json"


@pytest.fixture
def single_provider(card_factory):
    """Single media provider for a camera snapshot."""
    card = card_factory(media_source_type="single_media", single_media={"path": "/media/cam.jpg"})
    return SingleMediaProvider(card)


class TestStateStore:
    """Tests for saving and loading sessions."""

    def test_save_and_load(self, single_provider, state_file):
        """Test that a saved session loads back."""
        history = NavigationHistory()
        history.add(MediaItem(media_content_id="/media/cam.jpg"))

        saved_to = state_store.save(state_store.make_state(single_provider, history), state_file)
        loaded = state_store.load(state_file)

        assert saved_to == state_file
        assert loaded.provider.provider_type == "single_media"
        assert loaded.provider.data["media_path"] == "/media/cam.jpg"
        assert NavigationHistory.from_dict(loaded.history).items == history.items
        assert loaded.saved_at.tzinfo is not None

    def test_without_history(self, single_provider, state_file):
        """Test that a session can be saved without history."""
        state_store.save(state_store.make_state(single_provider), state_file)

        assert state_store.load(state_file).history == {}

    def test_load_missing(self, state_file):
        """Test that a missing file loads as None."""
        assert state_store.load(state_file) is None

    def test_load_corrupt(self, state_file):
        """Test that an unreadable file loads as None."""
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json")

        assert state_store.load(state_file) is None

    def test_delete(self, single_provider, state_file):
        """Test deleting a saved session."""
        state_store.save(state_store.make_state(single_provider), state_file)

        assert state_store.delete(state_file) is True
        assert state_file.exists() is False
        assert state_store.delete(state_file) is False
