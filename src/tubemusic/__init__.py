"""Tubemusic - queue tracks from a remote catalog and stream them through mpv."""

__version__ = "0.1.0"
