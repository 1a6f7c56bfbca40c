"""
Cross-cutting utilities for Tubemusic.

Contains:
- formatting: Duration display
- parsers: Interactive command parsing
"""

from .formatting import format_duration
from .parsers import parse_command, parse_position

__all__ = [
    "format_duration",
    "parse_command",
    "parse_position",
]
