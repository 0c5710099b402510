"""
Unit tests for media type classification.
"""

import pytest

from media_card.media_types import (
    MediaKind,
    classify,
    get_extension,
    is_supported,
)


class TestGetExtension:
    """Tests for extension extraction."""

    def test_lowercased(self):
        """Test that extensions are lowercased."""
        assert get_extension("/media/Photos/IMG_1.JPG") == "jpg"

    def test_query_string_ignored(self):
        """Test that a query string is stripped."""
        assert get_extension("/api/image/a.png?token=abc.def") == "png"

    def test_pipe_suffix_ignored(self):
        """Test that a pipe-encoded suffix is stripped."""
        assert get_extension("media-source://frigate/clip.mp4|cam1|main") == "mp4"

    def test_shared_suffix_ignored(self):
        """Test that a _shared suffix after the extension is stripped."""
        assert get_extension("/share/clip.mp4_shared") == "mp4"

    def test_no_extension(self):
        """Test that a filename without a dot has no extension."""
        assert get_extension("/media/Photos/README") is None

    def test_dot_in_folder_only(self):
        """Test that dots in folder names are not read as extensions."""
        assert get_extension("/media/v1.2/README") is None

    def test_empty(self):
        """Test that an empty reference has no extension."""
        assert get_extension("") is None


class TestClassify:
    """Tests for image/video classification."""

    @pytest.mark.parametrize("ext", ["mp4", "webm", "ogg", "mov", "m4v"])
    def test_video_extensions(self, ext):
        """Test that every video extension is classified as video."""
        assert classify(f"clip.{ext}") is MediaKind.VIDEO

    @pytest.mark.parametrize(
        "ext", ["jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "heic"]
    )
    def test_image_extensions(self, ext):
        """Test that every image extension is classified as image."""
        assert classify(f"photo.{ext}") is MediaKind.IMAGE

    def test_unsupported(self):
        """Test that unknown extensions are unsupported."""
        assert classify("notes.txt") is MediaKind.UNSUPPORTED
        assert classify("RAW_0001.cr3") is MediaKind.UNSUPPORTED

    def test_shared_video(self):
        """Test that a shared video link is still a video."""
        assert classify("/volume1/clip.MOV_shared") is MediaKind.VIDEO


class TestIsSupported:
    """Tests for the supported-format check."""

    def test_is_supported(self):
        """Test the supported check."""
        assert is_supported("a.jpg")
        assert not is_supported("a.txt")
