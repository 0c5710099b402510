"""
Pytest configuration and fixtures for media card tests.

This module provides shared fixtures for testing the providers and the
metadata pipeline, including a mock remote client, an in-memory browse
backend, temporary configuration files, and sample index records.
"""

import random
import tempfile
from pathlib import Path
from typing import Dict, Generator, List
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

from media_card.api_client import RemoteClient
from media_card.config import CardConfig
from media_card.sources.base import BrowseEntry, MediaSource


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def temp_config_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for configuration files.

    Yields:
        Path to temporary configuration directory
    """
    with tempfile.TemporaryDirectory(prefix="media_card_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def app_config_data() -> dict:
    """
    Create a sample application configuration.

    Returns:
        Dictionary with connection settings and card options
    """
    return {
        "server_url": "http://localhost:8123",
        "access_token": "test_token_1234567890abcdef",
        "log_level": "WARNING",
        "request_timeout": 10,
        "card": {
            "media_source_type": "folder",
            "folder": {
                "path": "/media/Photos",
                "mode": "random",
            },
            "mediaIndex": {
                "entityId": "sensor.media_index_photos",
            },
            "customDatetimeFormat": {
                "filenamePattern": "YYYYMMDD_HHmmss",
            },
        },
    }


@pytest.fixture
def app_config_file(temp_config_dir: Path, app_config_data: dict) -> Path:
    """
    Create a temporary configuration file.

    Args:
        temp_config_dir: Temporary directory for config files
        app_config_data: Configuration dictionary

    Returns:
        Path to the configuration file
    """
    config_path = temp_config_dir / "media-card.yaml"
    with open(config_path, "w") as f:
        yaml.dump(app_config_data, f)
    return config_path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host environment overrides out of the tests."""
    for name in (
        "MEDIA_CARD_SERVER_URL",
        "MEDIA_CARD_ACCESS_TOKEN",
        "MEDIA_CARD_LOG_LEVEL",
        "MEDIA_CARD_CONFIG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


def make_card(**options) -> CardConfig:
    """Build a CardConfig from keyword options (nested dicts allowed)."""
    return CardConfig.model_validate(options)


@pytest.fixture
def card_factory():
    """Factory building CardConfig objects from keyword options."""
    return make_card


@pytest.fixture
def folder_card() -> CardConfig:
    """Random flat folder card without a media index."""
    return make_card(
        media_source_type="folder",
        folder={"path": "/media/Photos", "recursive": False},
    )


@pytest.fixture
def index_card() -> CardConfig:
    """Random media index card."""
    return make_card(
        media_source_type="media_index",
        media_index={"entity_id": "sensor.media_index_photos"},
        folder={"path": "/media/Photos"},
        slideshow_window=20,
    )


# ============================================================================
# Mock Server Fixtures
# ============================================================================


@pytest.fixture
def mock_server_url() -> str:
    """
    Get the mock server URL for testing.

    Returns:
        Mock server URL string
    """
    return "http://localhost:8123"


@pytest.fixture
def mock_access_token() -> str:
    """
    Get a mock long-lived access token for testing.

    Returns:
        Access token string
    """
    return "test_token_1234567890abcdef"


@pytest.fixture
def mock_client() -> MagicMock:
    """
    Create a mock remote client.

    call_service is an AsyncMock; set return_value or side_effect per test.

    Returns:
        MagicMock implementing the RemoteClient interface
    """
    client = MagicMock(spec=RemoteClient)
    client.call_service = AsyncMock(return_value={})
    client.close = AsyncMock()
    return client


# ============================================================================
# Browse Backend Fixtures
# ============================================================================


class FakeMediaSource(MediaSource):
    """
    In-memory browse backend.

    Folders are given as {location: [child names]}; names ending in "/" are
    subfolders. Unknown locations raise FileNotFoundError.
    """

    def __init__(self, tree: Dict[str, List[str]], failures: Dict[str, Exception] = None):
        self.tree = tree
        self.failures = dict(failures or {})
        self.calls: List[str] = []

    async def browse(self, location: str) -> List[BrowseEntry]:
        self.calls.append(location)
        if location in self.failures:
            raise self.failures[location]
        if location not in self.tree:
            raise FileNotFoundError(f"Path does not exist: {location}")

        entries = []
        for name in self.tree[location]:
            is_dir = name.endswith("/")
            clean = name.rstrip("/")
            entries.append(
                BrowseEntry(
                    media_content_id=f"{location}/{clean}",
                    title=clean,
                    can_expand=is_dir,
                    media_class="directory" if is_dir else None,
                )
            )
        return entries

    def test_connection(self):
        return True, "ok"


@pytest.fixture
def source_factory():
    """Factory building FakeMediaSource objects from a folder tree."""
    return FakeMediaSource


@pytest.fixture
def photo_tree() -> Dict[str, List[str]]:
    """
    A small folder tree.

    Returns:
        Mapping of folder to children
    """
    return {
        "/media/Photos": [
            "IMG_20240101_090000.jpg",
            "notes.txt",
            "2023/",
            "2024/",
            "_Junk/",
        ],
        "/media/Photos/2023": [
            "IMG_20230505_120000.jpg",
            "clip_20230506_130000.mp4",
        ],
        "/media/Photos/2024": [
            "IMG_20240202_100000.jpg",
            "Trip/",
        ],
        "/media/Photos/2024/Trip": [
            "IMG_20240303_080000.jpg",
        ],
        "/media/Photos/_Junk": [
            "IMG_20000101_000000.jpg",
        ],
    }


@pytest.fixture
def fake_source(photo_tree) -> FakeMediaSource:
    """Browse backend over photo_tree."""
    return FakeMediaSource(photo_tree)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator for reproducible shuffles."""
    return random.Random(42)


# ============================================================================
# Index Record Fixtures
# ============================================================================


def make_record(index: int, **extra) -> dict:
    """Build a flat media index record."""
    path = f"/media/Photos/2024/IMG_{index:04d}.jpg"
    record = {
        "path": path,
        "filename": f"IMG_{index:04d}.jpg",
        "folder": "/media/Photos/2024",
        "date_taken": 1700000000 + index,
    }
    record.update(extra)
    return record


@pytest.fixture
def record_factory():
    """Factory building flat media index records."""
    return make_record


@pytest.fixture
def sample_records() -> List[dict]:
    """Ten flat media index records."""
    return [make_record(i) for i in range(10)]


@pytest.fixture
def sample_file_metadata() -> dict:
    """
    A get_file_metadata response with nested EXIF data.

    Returns:
        Response body as returned by the service
    """
    return {
        "path": "/media/Photos/2024/IMG_0001.jpg",
        "filename": "IMG_0001.jpg",
        "folder": "/media/Photos/2024",
        "created_time": "2024-03-15T10:00:00",
        "is_favorited": False,
        "exif": {
            "date_taken": "2024:03:14 18:30:00",
            "latitude": 48.8566,
            "longitude": 2.3522,
            "location_city": "Paris",
            "location_country": "France",
            "location_country_code": "FR",
            "camera_make": "Canon",
            "camera_model": "EOS R5",
            "is_favorited": True,
        },
    }
