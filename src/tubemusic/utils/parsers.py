"""
Command parsing utilities for the interactive host.
"""

from typing import List, Optional


def parse_command(user_input: str) -> tuple[str, List[str]]:
    """
    Parse user input into command and arguments.

    Args:
        user_input: Raw user input string

    Returns:
        Tuple of (command, args) where command is lowercase and args is a list
    """
    parts = user_input.strip().split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


def parse_position(arg: str, count: int) -> Optional[int]:
    """
    Convert a 1-based position typed by the user into a 0-based index.

    Positions are shown to users starting from 1; the store indexes from 0.

    Args:
        arg: Raw argument text
        count: Number of items the position refers into

    Returns:
        0-based index, or None if the argument is not a valid position
    """
    try:
        position = int(arg)
    except ValueError:
        return None
    if not 1 <= position <= count:
        return None
    return position - 1


__all__ = ["parse_command", "parse_position"]
