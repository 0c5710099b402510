"""
Unit tests for the media-card CLI commands.

Tests extract, classify, config, and play using the Click test runner.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from click.testing import CliRunner

from cli.main import cli
from media_card.metadata import EnrichedMetadata


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def configured(monkeypatch, app_config_file):
    """Point the CLI at the sample configuration file."""
    monkeypatch.setenv("MEDIA_CARD_CONFIG_PATH", str(app_config_file))
    return app_config_file


@pytest.fixture
def unconfigured(monkeypatch, temp_config_dir):
    """Point the CLI at a configuration file that does not exist."""
    config_path = temp_config_dir / "media-card.yaml"
    monkeypatch.setenv("MEDIA_CARD_CONFIG_PATH", str(config_path))
    return config_path


# ============================================================================
# Tests
# ============================================================================


class TestMainGroup:
    """Tests for the command group."""

    def test_version(self, runner):
        """Test the version option."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "media-card" in result.output

    def test_help_lists_commands(self, runner):
        """Test that every command is registered."""
        result = runner.invoke(cli, ["--help"])

        for command in ("extract", "classify", "play", "config"):
            assert command in result.output


class TestExtractCommand:
    """Tests for the extract command."""

    def test_builtin_pattern(self, runner, unconfigured):
        """Test extraction with the built-in filename patterns."""
        result = runner.invoke(cli, ["extract", "/media/Photos/2024/IMG_20240115_143022.jpg"])

        assert result.exit_code == 0
        assert "IMG_20240115_143022.jpg" in result.output
        assert "Photos/2024" in result.output
        assert "2024-01-15 14:30:22" in result.output

    def test_folder_pattern_option(self, runner, unconfigured):
        """Test that --folder-pattern dates files by their folder."""
        result = runner.invoke(
            cli,
            ["extract", "/media/Photos/2023-07-04/party.jpg", "--folder-pattern", "YYYY-MM-DD", "--json"],
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["filename"] == "party.jpg"
        assert data["captured_at"].startswith("2023-07-04")

    def test_undated(self, runner, unconfigured):
        """Test that files without a date show a placeholder."""
        result = runner.invoke(cli, ["extract", "/media/Photos/beach.jpg"])

        assert result.exit_code == 0
        assert "Captured:  -" in result.output

    def test_enrich_requires_index(self, runner, unconfigured):
        """Test that --enrich fails without a server and index."""
        result = runner.invoke(cli, ["extract", "/media/Photos/a.jpg", "--enrich"])

        assert result.exit_code == 1
        assert "Enrichment needs" in result.output

    def test_enrich(self, runner, configured):
        """Test that enriched fields are shown."""
        enriched = EnrichedMetadata(
            filename="a.jpg",
            folder="/media/Photos",
            latitude=48.8566,
            longitude=2.3522,
            has_coordinates=True,
            location_city="Paris",
            location_country="France",
            is_geocoded=True,
            camera_make="Canon",
            camera_model="EOS R5",
            is_favorited=True,
        )

        with patch("cli.extract._enrich", new=AsyncMock(return_value=enriched)) as mock_enrich:
            result = runner.invoke(cli, ["extract", "/media/Photos/a.jpg", "--enrich"])

        assert result.exit_code == 0
        assert mock_enrich.await_args.args[1] == "/media/Photos/a.jpg"
        assert "48.8566, 2.3522" in result.output
        assert "Paris, France" in result.output
        assert "Canon EOS R5" in result.output
        assert "Favorite" in result.output

    def test_invalid_config(self, runner, unconfigured):
        """Test that an unreadable config file exits with an error."""
        unconfigured.write_text("server_url: [unclosed\n")

        result = runner.invoke(cli, ["extract", "/media/Photos/a.jpg"])

        assert result.exit_code == 1
        assert "Failed to load config" in result.output


class TestClassifyCommand:
    """Tests for the classify command."""

    def test_text_output(self, runner):
        """Test one line per reference."""
        result = runner.invoke(cli, ["classify", "IMG_1.jpg", "clip.MP4", "notes.txt"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["image", "IMG_1.jpg"]
        assert lines[1].split() == ["video", "clip.MP4"]
        assert lines[2].split() == ["unsupported", "notes.txt"]

    def test_json_output(self, runner):
        """Test the JSON output format."""
        result = runner.invoke(cli, ["classify", "clip.mp4_shared", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"path": "clip.mp4_shared", "extension": "mp4", "kind": "video"}
        ]

    def test_requires_paths(self, runner):
        """Test that at least one path is required."""
        result = runner.invoke(cli, ["classify"])
        assert result.exit_code != 0


class TestConfigCommands:
    """Tests for the config command group."""

    def test_path(self, runner, configured):
        """Test printing the config file path."""
        result = runner.invoke(cli, ["config", "path"])

        assert result.exit_code == 0
        assert result.output.strip() == str(configured)

    def test_show_masks_token(self, runner, configured):
        """Test that show masks the access token."""
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "http://localhost:8123" in result.output
        assert "test...cdef" in result.output
        assert "test_token_1234567890abcdef" not in result.output
        assert "sensor.media_index_photos" in result.output

    def test_show_warns_on_invalid_config(self, runner, unconfigured):
        """Test that show reports validation problems."""
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "not created yet" in result.output
        assert "Warning" in result.output
        assert "folder.path" in result.output

    def test_set_server(self, runner, unconfigured):
        """Test saving the server connection."""
        result = runner.invoke(
            cli, ["config", "set-server", "http://ha.local:8123", "--token", "secret"]
        )

        assert result.exit_code == 0
        saved = yaml.safe_load(unconfigured.read_text())
        assert saved["server_url"] == "http://ha.local:8123"
        assert saved["access_token"] == "secret"

    def test_set_server_without_token(self, runner, unconfigured):
        """Test the reminder shown when no token is configured."""
        result = runner.invoke(cli, ["config", "set-server", "http://ha.local:8123"])

        assert result.exit_code == 0
        assert "No access token set" in result.output

    def test_set_server_invalid_url(self, runner, unconfigured):
        """Test that an invalid URL is rejected."""
        result = runner.invoke(cli, ["config", "set-server", "ha.local"])

        assert result.exit_code == 1
        assert "Invalid server URL" in result.output
        assert not unconfigured.exists()


class TestPlayCommand:
    """Tests for the play command."""

    def test_options_forwarded(self, runner, configured, tmp_path):
        """Test that options reach the slideshow runner."""
        state_file = tmp_path / "session.json"

        with patch("cli.play.run_slideshow", return_value=0) as mock_run:
            result = runner.invoke(
                cli,
                ["play", "-n", "3", "-i", "0", "--fresh", "--state-file", str(state_file)],
            )

        assert result.exit_code == 0
        assert "Source: folder" in result.output
        kwargs = mock_run.call_args.kwargs
        assert kwargs["count"] == 3
        assert kwargs["interval"] == 0
        assert kwargs["fresh"] is True
        assert kwargs["state_path"] == Path(state_file)
        assert kwargs["media_root"] is None

    def test_exit_code_forwarded(self, runner, configured):
        """Test that the runner exit code becomes the process exit code."""
        with patch("cli.play.run_slideshow", return_value=3):
            result = runner.invoke(cli, ["play"])

        assert result.exit_code == 3

    def test_invalid_count(self, runner, configured):
        """Test that a count below one is rejected."""
        result = runner.invoke(cli, ["play", "--count", "0"])
        assert result.exit_code == 2
