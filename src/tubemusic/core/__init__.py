"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging and console output (Loguru, Rich)
"""

from .config import (
    Config,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_storage_dir,
    create_default_config,
    ensure_directories,
)
from .output import setup_loguru, get_console, safe_print, log

__all__ = [
    # Config
    "Config",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_storage_dir",
    "create_default_config",
    "ensure_directories",
    # Output
    "setup_loguru",
    "get_console",
    "safe_print",
    "log",
]
