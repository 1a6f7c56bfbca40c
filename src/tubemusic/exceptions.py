"""Tubemusic exceptions for error handling."""

from typing import NamedTuple, Optional


class TubemusicError(Exception):
    """Base exception for Tubemusic operations."""

    pass


class CatalogUnavailable(TubemusicError):
    """Raised when search or stream resolution fails (network, HTTP, payload)."""

    pass


class InvalidSelection(TubemusicError, ValueError):
    """Raised when a track index is outside the queue."""

    def __init__(self, index: int, queue_length: int):
        self.index = index
        self.queue_length = queue_length
        super().__init__(
            f"Track index {index} is out of range for a queue of {queue_length}"
        )


class CorruptPersistedState(TubemusicError):
    """Raised when a saved queue payload fails validation."""

    pass


class StalePlaybackResolution(TubemusicError):
    """Raised internally when a stream resolution lost a race with a newer selection."""

    pass


class PlaybackFailure(NamedTuple):
    """A selection that could not be played, reported to the host."""

    track_id: str
    title: str
    reason: str
    error: Optional[Exception] = None

    @property
    def message(self) -> str:
        return f"Could not load track '{self.title}': {self.reason}"
