"""
Unit tests for the local filesystem browse backend.
"""

import pytest

from media_card.sources.local_source import LocalMediaSource


@pytest.fixture
def media_dir(tmp_path):
    """A media folder with files of each kind, a hidden file, and a subfolder."""
    folder = tmp_path / "media" / "Photos"
    (folder / "2024").mkdir(parents=True)
    for name in ("a.jpg", "b.mp4", "notes.txt", ".hidden.jpg"):
        (folder / name).write_bytes(b"")
    return folder


class TestLocalMediaSource:
    """Tests for LocalMediaSource."""

    @pytest.mark.asyncio
    async def test_browse(self, media_dir):
        """Test listing files and folders with their media class."""
        source = LocalMediaSource()

        entries = await source.browse(str(media_dir))

        assert [(e.title, e.media_class, e.can_expand) for e in entries] == [
            ("2024", "directory", True),
            ("a.jpg", "image", False),
            ("b.mp4", "video", False),
            ("notes.txt", None, False),
        ]
        assert entries[1].media_content_id == f"{media_dir}/a.jpg"
        assert entries[1].last_modified is not None

    @pytest.mark.asyncio
    async def test_browse_with_root(self, tmp_path, media_dir):
        """Test that /media paths resolve against the configured root."""
        source = LocalMediaSource(root=str(tmp_path))

        entries = await source.browse("/media/Photos")

        assert "/media/Photos/a.jpg" in [e.media_content_id for e in entries]

    @pytest.mark.asyncio
    async def test_browse_media_source_uri(self, tmp_path, media_dir):
        """Test that local media-source URIs keep their form."""
        source = LocalMediaSource(root=str(tmp_path))

        entries = await source.browse("media-source://media_source/media/Photos/")

        ids = [e.media_content_id for e in entries]
        assert "media-source://media_source/media/Photos/2024" in ids

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path):
        """Test that a missing folder raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await LocalMediaSource().browse(str(tmp_path / "missing"))

    @pytest.mark.asyncio
    async def test_not_a_directory(self, media_dir):
        """Test that browsing a file raises ValueError."""
        with pytest.raises(ValueError):
            await LocalMediaSource().browse(str(media_dir / "a.jpg"))

    def test_connection(self, tmp_path):
        """Test the connection check with and without a valid root."""
        assert LocalMediaSource().test_connection()[0] is True
        assert LocalMediaSource(root=str(tmp_path)).test_connection()[0] is True

        success, message = LocalMediaSource(root=str(tmp_path / "missing")).test_connection()
        assert success is False
        assert "missing" in message
