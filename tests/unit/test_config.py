"""
Unit tests for the configuration module.

Tests configuration loading, saving, environment overrides, card option
parsing, and validation.
"""

import pytest
import yaml

from media_card.config import (
    AppConfig,
    CardConfig,
    ConfigError,
    ConfigValidationError,
)


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_default_config_values(self, temp_config_dir):
        """Test that default configuration values are set correctly."""
        config = AppConfig(config_dir=temp_config_dir)

        assert config.server_url == ""
        assert config.access_token == ""
        assert config.log_level == "INFO"
        assert config.request_timeout == 30.0
        assert config.card.media_source_type == "folder"
        assert config.is_configured is False

    def test_load_config_from_file(self, app_config_file, app_config_data):
        """Test loading configuration from a YAML file."""
        config = AppConfig(config_path=app_config_file)

        assert config.server_url == app_config_data["server_url"]
        assert config.access_token == app_config_data["access_token"]
        assert config.log_level == "WARNING"
        assert config.request_timeout == 10
        assert config.is_configured is True

    def test_camel_case_card_options(self, app_config_file):
        """Test that camelCase card keys are accepted."""
        config = AppConfig(config_path=app_config_file)

        assert config.card.media_index.entity_id == "sensor.media_index_photos"
        assert config.card.custom_datetime_format.filename_pattern == "YYYYMMDD_HHmmss"

    def test_save_config_to_file(self, temp_config_dir):
        """Test saving configuration to a YAML file."""
        config_path = temp_config_dir / "media-card.yaml"
        config = AppConfig(config_path=config_path)
        config.server_url = "http://homeassistant.local:8123"
        config.access_token = "token123"
        config.card = AppConfig.parse_card({"folder": {"path": "/media/Photos"}})
        config.save()

        with open(config_path) as f:
            saved = yaml.safe_load(f)

        assert saved["server_url"] == "http://homeassistant.local:8123"
        assert saved["access_token"] == "token123"
        assert saved["card"] == {"folder": {"path": "/media/Photos"}}

        reloaded = AppConfig(config_path=config_path)
        assert reloaded.card.folder.path == "/media/Photos"

    def test_load_config_from_environment(self, temp_config_dir, monkeypatch):
        """Test that environment variables override file configuration."""
        monkeypatch.setenv("MEDIA_CARD_SERVER_URL", "http://env-server:8123")
        monkeypatch.setenv("MEDIA_CARD_ACCESS_TOKEN", "env_token")
        monkeypatch.setenv("MEDIA_CARD_LOG_LEVEL", "DEBUG")

        config = AppConfig(config_dir=temp_config_dir)

        assert config.server_url == "http://env-server:8123"
        assert config.access_token == "env_token"
        assert config.log_level == "DEBUG"

    def test_config_path_from_environment(self, app_config_file, monkeypatch):
        """Test that MEDIA_CARD_CONFIG_PATH selects the config file."""
        monkeypatch.setenv("MEDIA_CARD_CONFIG_PATH", str(app_config_file))

        config = AppConfig()

        assert config.config_path == app_config_file
        assert config.server_url == "http://localhost:8123"

    def test_debug_mode_forces_debug_logging(self, temp_config_dir):
        """Test that debug_mode raises the log level."""
        config = AppConfig(config_dir=temp_config_dir)
        config.card = CardConfig(debug_mode=True)

        assert config.log_level == "DEBUG"

    def test_config_file_not_found_uses_defaults(self, temp_config_dir):
        """Test that missing config file uses default values."""
        config = AppConfig(config_path=temp_config_dir / "nonexistent.yaml")

        assert config.server_url == ""
        assert config.card.slideshow_window == 100

    def test_invalid_yaml(self, temp_config_dir):
        """Test that a malformed file raises ConfigError."""
        config_path = temp_config_dir / "media-card.yaml"
        config_path.write_text("server_url: [unclosed\n")

        with pytest.raises(ConfigError):
            AppConfig(config_path=config_path)

    def test_non_mapping_yaml(self, temp_config_dir):
        """Test that a file without a mapping raises ConfigError."""
        config_path = temp_config_dir / "media-card.yaml"
        config_path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            AppConfig(config_path=config_path)

    def test_invalid_card_options(self, temp_config_dir):
        """Test that invalid card options raise ConfigValidationError."""
        config_path = temp_config_dir / "media-card.yaml"
        config_path.write_text(yaml.dump({"card": {"folder": {"order_by": "size"}}}))

        with pytest.raises(ConfigValidationError):
            AppConfig(config_path=config_path)


class TestConfigValidation:
    """Tests for configuration validation."""

    @pytest.fixture
    def config(self, temp_config_dir) -> AppConfig:
        """A valid folder configuration."""
        config = AppConfig(config_dir=temp_config_dir)
        config.card = AppConfig.parse_card({"folder": {"path": "/media/Photos"}})
        return config

    def test_valid_configuration(self, config):
        """Test that a complete configuration validates."""
        config.server_url = "http://homeassistant:8123"
        config.validate()

    def test_invalid_server_url(self, config):
        """Test that a malformed URL is rejected."""
        config.server_url = "not a url"

        with pytest.raises(ConfigValidationError):
            config.validate()

    def test_non_positive_timeout(self, config):
        """Test that the request timeout must be positive."""
        config.request_timeout = 0

        with pytest.raises(ConfigValidationError):
            config.validate()

    def test_folder_source_needs_path(self, config):
        """Test that folder sources require folder.path."""
        config.card = CardConfig()

        with pytest.raises(ConfigValidationError, match="folder.path"):
            config.validate()

    def test_single_media_needs_path(self, config):
        """Test that single media sources require single_media.path."""
        config.card = CardConfig(media_source_type="single_media")

        with pytest.raises(ConfigValidationError, match="single_media.path"):
            config.validate()

    def test_media_index_source_needs_index(self, config):
        """Test that media_index sources require an active index."""
        config.card = CardConfig(media_source_type="media_index")

        with pytest.raises(ConfigValidationError):
            config.validate()


class TestCardConfig:
    """Tests for card option parsing."""

    def test_defaults(self):
        """Test default card options."""
        card = CardConfig()

        assert card.folder.mode == "random"
        assert card.folder.recursive is True
        assert card.folder.loop is True
        assert card.folder.sequential.order_direction == "desc"
        assert card.media_type == "all"
        assert card.filters.favorites is False

    def test_unknown_keys_ignored(self):
        """Test that unknown dashboard keys do not fail validation."""
        card = CardConfig.model_validate({"theme": "dark", "folder": {"path": "/media"}})
        assert card.folder.path == "/media"

    def test_priority_folders(self):
        """Test parsing of priority folder weights."""
        card = CardConfig.model_validate(
            {"folder": {"priorityFolders": [{"path": "Favorites", "weightMultiplier": 5}]}}
        )

        assert card.folder.priority_folders[0].path == "Favorites"
        assert card.folder.priority_folders[0].weight_multiplier == 5

    def test_media_index_active(self):
        """Test the media index activation rule."""
        assert not CardConfig().media_index.is_active
        assert CardConfig.model_validate({"media_index": {"enabled": True}}).media_index.is_active
        assert CardConfig.model_validate(
            {"media_index": {"entity_id": "sensor.x"}}
        ).media_index.is_active

    def test_invalid_slideshow_window(self):
        """Test that slideshow_window must be positive."""
        with pytest.raises(ValueError):
            CardConfig(slideshow_window=0)
