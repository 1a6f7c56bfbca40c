"""
Unified output using Loguru and Rich.

Log records go to a rotating file via loguru; user-facing messages are
additionally printed through a shared Rich console.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console

_console: Optional[Console] = None

LEVEL_STYLES = {
    "debug": "cyan",
    "info": "white",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def setup_loguru(
    log_file: Path, level: str = "INFO", console_output: bool = False
) -> None:
    """
    Configure loguru file logging (the interactive console shows user messages).

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Also mirror log records to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def get_console() -> Console:
    """Get or create the shared Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: Optional[str] = None) -> None:
    """Print through the Rich console with optional styling."""
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def log(message: str, level: str = "info") -> None:
    """
    Log a user-facing message to file and print it to the console.

    Args:
        message: User-facing message
        level: Log level (debug, info, success, warning, error)
    """
    getattr(logger, level)(message)
    if level != "debug":
        safe_print(message, style=LEVEL_STYLES.get(level, "white"))
