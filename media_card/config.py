"""
Media card configuration module.

Manages the connection settings (server URL, access token, logging) and
the card options that select and tune the media provider. Configuration
can be loaded from a YAML file and overridden by environment variables.

The card options mirror the dashboard card configuration and accept both
snake_case and camelCase keys.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


# ============================================================================
# Constants
# ============================================================================

APP_NAME = "media-card"
APP_AUTHOR = "MediaCard"
CONFIG_FILENAME = "media-card.yaml"
STATE_FILENAME = "session-state.json"

# Environment variable names
ENV_SERVER_URL = "MEDIA_CARD_SERVER_URL"
ENV_ACCESS_TOKEN = "MEDIA_CARD_ACCESS_TOKEN"
ENV_LOG_LEVEL = "MEDIA_CARD_LOG_LEVEL"
ENV_CONFIG_PATH = "MEDIA_CARD_CONFIG_PATH"

# Default values
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
DEFAULT_SLIDESHOW_WINDOW = 100
DEFAULT_NEW_FILES_THRESHOLD = 3600  # seconds

VALID_ORDER_BY = frozenset(["date_taken", "filename", "path", "modified_time"])

# URL validation regex
URL_PATTERN = re.compile(
    r"^https?://"  # http:// or https://
    r"(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,6}\.?|"  # domain
    r"localhost|"  # localhost
    r"[A-Z0-9-]+|"  # bare hostname (e.g. homeassistant)
    r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})"  # ...or ip
    r"(?::\d+)?"  # optional port
    r"(?:/?|[/?]\S+)$",
    re.IGNORECASE,
)


# ============================================================================
# Exceptions
# ============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    pass


# ============================================================================
# Helper Functions
# ============================================================================


def get_default_config_dir() -> Path:
    """
    Get the default configuration directory for the current platform.

    Returns:
        Path to the platform-appropriate config directory
    """
    return Path(user_config_dir(APP_NAME, APP_AUTHOR))


def get_default_config_path() -> Path:
    """
    Get the default configuration file path.

    Returns:
        Path to the default config file
    """
    return get_default_config_dir() / CONFIG_FILENAME


def get_default_state_path() -> Path:
    """Get the default session state file path (platform data directory)."""
    return Path(user_data_dir(APP_NAME, APP_AUTHOR)) / STATE_FILENAME


# ============================================================================
# Card Options
# ============================================================================


class CardOptions(BaseModel):
    """Base model for card options: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class DateTimeFormatConfig(CardOptions):
    """
    User-supplied date/time patterns for filenames and folder paths.

    Patterns use the tokens YYYY, MM, DD, HH, mm and ss; every other
    character is matched literally.
    """

    filename_pattern: Optional[str] = Field(
        default=None, description="Pattern applied to the filename"
    )
    folder_pattern: Optional[str] = Field(
        default=None, description="Pattern applied to the folder path"
    )


class MediaIndexConfig(CardOptions):
    """Connection to the remote media index integration."""

    enabled: bool = Field(default=False, description="Use the media index")
    entity_id: Optional[str] = Field(
        default=None, description="Media index sensor entity to target"
    )

    @property
    def is_active(self) -> bool:
        """The index is active when enabled or when an entity is configured."""
        return bool(self.enabled or self.entity_id)


class SingleMediaConfig(CardOptions):
    """Options for the single-item source."""

    path: Optional[str] = Field(default=None, description="Media path or URI")


class SequentialConfig(CardOptions):
    """Ordering options for sequential mode."""

    order_direction: Literal["asc", "desc"] = "desc"


class PriorityFolder(CardOptions):
    """A folder pattern whose files are favored during random sampling."""

    path: str
    weight_multiplier: float = Field(default=3.0, gt=0)


class FolderConfig(CardOptions):
    """Options for folder-based sources."""

    path: Optional[str] = Field(default=None, description="Base folder")
    mode: Literal["random", "sequential"] = "random"
    recursive: bool = True
    scan_depth: Optional[int] = Field(
        default=None, ge=0, description="Subfolder depth (None = unlimited)"
    )
    order_by: str = "date_taken"
    sequential: SequentialConfig = Field(default_factory=SequentialConfig)
    priority_folders: List[PriorityFolder] = Field(default_factory=list)
    use_media_index_for_discovery: bool = True
    priority_new_files: bool = False
    new_files_threshold_seconds: int = Field(default=DEFAULT_NEW_FILES_THRESHOLD, ge=0)
    estimated_total_photos: Optional[int] = Field(default=None, gt=0)
    loop: bool = Field(default=True, description="Start over after the last item")

    @field_validator("order_by")
    @classmethod
    def validate_order_by(cls, v: str) -> str:
        """Validate the sequential sort field."""
        if v not in VALID_ORDER_BY:
            raise ValueError(
                f"Invalid order_by '{v}'. Must be one of: {', '.join(sorted(VALID_ORDER_BY))}"
            )
        return v


class DateRangeFilter(CardOptions):
    """Inclusive capture-date range (YYYY-MM-DD strings)."""

    start: Optional[str] = None
    end: Optional[str] = None


class FilterConfig(CardOptions):
    """Filters forwarded to the media index queries."""

    favorites: bool = False
    date_range: DateRangeFilter = Field(default_factory=DateRangeFilter)


class CardConfig(CardOptions):
    """
    Complete card configuration.

    Selects the provider variant (media_source_type plus folder options)
    and tunes metadata extraction and enrichment.
    """

    media_source_type: Literal["single_media", "folder", "media_index"] = "folder"
    single_media: SingleMediaConfig = Field(default_factory=SingleMediaConfig)
    folder: FolderConfig = Field(default_factory=FolderConfig)
    media_index: MediaIndexConfig = Field(default_factory=MediaIndexConfig)
    custom_datetime_format: DateTimeFormatConfig = Field(
        default_factory=DateTimeFormatConfig
    )
    debug_mode: bool = False
    slideshow_window: int = Field(default=DEFAULT_SLIDESHOW_WINDOW, ge=1)
    media_type: Literal["all", "image", "video"] = "all"
    filters: FilterConfig = Field(default_factory=FilterConfig)


# ============================================================================
# AppConfig Class
# ============================================================================


class AppConfig:
    """
    Application configuration manager.

    Handles loading, saving, and validating configuration.
    Configuration sources (in priority order):
    1. Environment variables
    2. Configuration file
    3. Default values

    Attributes:
        server_url: Home Assistant base URL
        access_token: Long-lived access token
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        request_timeout: Remote call timeout in seconds
        card: Card options (CardConfig)
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config_dir: Optional[Path] = None,
    ):
        """
        Initialize application configuration.

        Args:
            config_path: Explicit path to config file (takes precedence)
            config_dir: Directory containing config file
        """
        if config_path:
            self._config_path = Path(config_path)
            self._config_dir = self._config_path.parent
        elif config_dir:
            self._config_dir = Path(config_dir)
            self._config_path = self._config_dir / CONFIG_FILENAME
        else:
            env_path = os.environ.get(ENV_CONFIG_PATH)
            if env_path:
                self._config_path = Path(env_path)
                self._config_dir = self._config_path.parent
            else:
                self._config_dir = get_default_config_dir()
                self._config_path = self._config_dir / CONFIG_FILENAME

        self._server_url: str = ""
        self._access_token: str = ""
        self._log_level: str = DEFAULT_LOG_LEVEL
        self._request_timeout: float = DEFAULT_REQUEST_TIMEOUT
        self._card: CardConfig = CardConfig()

        self._load()

    @property
    def config_path(self) -> Path:
        """Get the configuration file path."""
        return self._config_path

    # -------------------------------------------------------------------------
    # Configuration Properties
    # -------------------------------------------------------------------------

    @property
    def server_url(self) -> str:
        """Get the server URL."""
        return os.environ.get(ENV_SERVER_URL, self._server_url)

    @server_url.setter
    def server_url(self, value: str) -> None:
        self._server_url = value

    @property
    def access_token(self) -> str:
        """Get the access token."""
        return os.environ.get(ENV_ACCESS_TOKEN, self._access_token)

    @access_token.setter
    def access_token(self, value: str) -> None:
        self._access_token = value

    @property
    def log_level(self) -> str:
        """Get the log level (debug_mode forces DEBUG)."""
        if self._card.debug_mode:
            return "DEBUG"
        return os.environ.get(ENV_LOG_LEVEL, self._log_level)

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._log_level = value

    @property
    def request_timeout(self) -> float:
        """Get the remote call timeout in seconds."""
        return self._request_timeout

    @request_timeout.setter
    def request_timeout(self, value: float) -> None:
        self._request_timeout = value

    @property
    def card(self) -> CardConfig:
        """Get the card options."""
        return self._card

    @card.setter
    def card(self, value: CardConfig) -> None:
        self._card = value

    @property
    def is_configured(self) -> bool:
        """Check if a server connection is configured."""
        return bool(self.server_url and self.access_token)

    # -------------------------------------------------------------------------
    # Configuration Management
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        """Load configuration from file."""
        if not self._config_path.exists():
            return

        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {self._config_path}")

        self._server_url = data.get("server_url", "")
        self._access_token = data.get("access_token", "")
        self._log_level = data.get("log_level", DEFAULT_LOG_LEVEL)
        self._request_timeout = data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
        self._card = self.parse_card(data.get("card") or {})

    @staticmethod
    def parse_card(data: Dict[str, Any]) -> CardConfig:
        """
        Validate a raw card options mapping.

        Args:
            data: Card options as found in YAML (snake_case or camelCase keys)

        Returns:
            Validated CardConfig

        Raises:
            ConfigValidationError: If the options are invalid
        """
        try:
            return CardConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid card configuration: {e}")

    def save(self) -> None:
        """Save configuration to file."""
        self._config_dir.mkdir(parents=True, exist_ok=True)

        data = {
            "server_url": self._server_url,
            "access_token": self._access_token,
            "log_level": self._log_level,
            "request_timeout": self._request_timeout,
            "card": self._card.model_dump(mode="json", exclude_defaults=True),
        }

        with open(self._config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def validate(self) -> None:
        """
        Validate the current configuration.

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        if self.server_url and not URL_PATTERN.match(self.server_url):
            raise ConfigValidationError(
                f"Invalid server_url format: {self.server_url}"
            )

        if self.request_timeout <= 0:
            raise ConfigValidationError(
                f"request_timeout must be positive, got: {self.request_timeout}"
            )

        card = self._card
        if card.media_source_type == "single_media" and not card.single_media.path:
            raise ConfigValidationError("single_media.path is required for single_media")
        if card.media_source_type == "folder" and not card.folder.path:
            raise ConfigValidationError("folder.path is required for folder sources")
        if card.media_source_type == "media_index" and not card.media_index.is_active:
            raise ConfigValidationError(
                "media_index.entity_id is required for media_index sources"
            )
