"""
Configuration management for Tubemusic
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class CatalogConfig:
    """Configuration for the remote catalog service."""

    base_url: str = "http://localhost:3000"
    search_limit: int = 10
    timeout_seconds: float = 10.0  # Applies to search and stream resolution

    def validate(self) -> None:
        """Validate catalog configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"Catalog base_url must be http(s): {self.base_url!r}")
        if self.search_limit < 1:
            raise ValueError(f"search_limit must be >= 1, got {self.search_limit}")
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass
class PlayerConfig:
    """Configuration for the audio player."""

    mpv_socket_path: Optional[str] = None
    volume: float = 0.5  # 0.0 - 1.0
    volume_step: float = 0.1

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not 0.0 <= self.volume <= 1.0:
            raise ValueError(f"volume must be within 0.0-1.0, got {self.volume}")
        if not 0.0 < self.volume_step <= 1.0:
            raise ValueError(
                f"volume_step must be within (0.0, 1.0], got {self.volume_step}"
            )


@dataclass
class StorageConfig:
    """Configuration for queue persistence."""

    state_key: str = "tubemusic-songs"
    directory: Optional[str] = None  # Default: data dir


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/tubemusic/tubemusic.log)
    )
    console_output: bool = False  # Also output to console (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "tubemusic"
    return Path.home() / ".config" / "tubemusic"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Used during development so the project's config file is picked up
    regardless of the working directory.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            # Found project root but no config.toml there
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/tubemusic (or ~/.config/tubemusic)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "tubemusic"
    return Path.home() / ".local" / "share" / "tubemusic"


def get_storage_dir(config: Config) -> Path:
    """Directory holding persisted queue state."""
    if config.storage.directory:
        return Path(config.storage.directory).expanduser()
    return get_data_dir()


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Tubemusic Configuration

[catalog]
# Base URL of the catalog service (exposes /api/search and /api/play)
base_url = "http://localhost:3000"

# Number of search results to request
search_limit = 10

# Timeout for catalog requests, in seconds
timeout_seconds = 10.0

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/tubemusic-mpv"

# Initial volume (0.0 - 1.0)
volume = 0.5

# Volume change per vol+/vol- command
volume_step = 0.1

[storage]
# Key the queue is saved under
state_key = "tubemusic-songs"

# Directory for saved state (default: ~/.local/share/tubemusic)
# directory = "~/.local/share/tubemusic"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/tubemusic/tubemusic.log)
# log_file = "/path/to/custom/tubemusic.log"

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data.

    Sections that fail validation are replaced by their defaults.
    """
    config = Config()

    if "catalog" in toml_data:
        catalog_data = toml_data["catalog"]
        config.catalog = CatalogConfig(
            base_url=str(catalog_data.get("base_url", config.catalog.base_url)).rstrip(
                "/"
            ),
            search_limit=int(
                catalog_data.get("search_limit", config.catalog.search_limit)
            ),
            timeout_seconds=float(
                catalog_data.get("timeout_seconds", config.catalog.timeout_seconds)
            ),
        )
        try:
            config.catalog.validate()
        except ValueError as e:
            print(f"Warning: Invalid catalog configuration: {e}")
            print("Using default catalog configuration.")
            config.catalog = CatalogConfig()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=float(player_data.get("volume", config.player.volume)),
            volume_step=float(
                player_data.get("volume_step", config.player.volume_step)
            ),
        )
        try:
            config.player.validate()
        except ValueError as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        config.storage = StorageConfig(
            state_key=storage_data.get("state_key", config.storage.state_key),
            directory=storage_data.get("directory"),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - TUBEMUSIC_CATALOG_URL
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = parse_config(toml_data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    catalog_url = os.environ.get("TUBEMUSIC_CATALOG_URL")
    if catalog_url:
        config.catalog.base_url = catalog_url.rstrip("/")

    return config


def ensure_directories(config: Optional[Config] = None) -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
    if config is not None:
        get_storage_dir(config).mkdir(parents=True, exist_ok=True)
