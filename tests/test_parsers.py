"""Tests for interactive command parsing."""

from tubemusic.utils.parsers import parse_command, parse_position


def test_parse_command():
    assert parse_command("  SEARCH daft punk ") == ("search", ["daft", "punk"])
    assert parse_command("") == ("", [])


def test_parse_position_is_one_based():
    assert parse_position("1", 3) == 0
    assert parse_position("3", 3) == 2


def test_parse_position_rejects_invalid():
    assert parse_position("0", 3) is None
    assert parse_position("4", 3) is None
    assert parse_position("two", 3) is None
    assert parse_position("1", 0) is None
