"""
Playlist domain models.

Contains the immutable values the playlist store hands around: tracks, the
playback position and the application state that combines them.
"""

import math
from typing import Any, NamedTuple


class Track(NamedTuple):
    """A catalog track queued for playback.

    Fields mirror the catalog payload: ``duration`` is in whole seconds.
    """

    id: str  # Unique catalog identifier
    title: str
    uploader: str
    duration: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "Track":
        """Parse a catalog or persisted track payload.

        Accepts ``durationSeconds`` as an alias for ``duration``.

        Raises:
            ValueError: If the payload is not a well-formed track
        """
        if not isinstance(data, dict):
            raise ValueError(f"Track payload must be an object, got {type(data).__name__}")

        track_id = data.get("id")
        if not isinstance(track_id, str) or not track_id:
            raise ValueError(f"Track payload has no valid id: {data!r}")

        title = data.get("title", "")
        uploader = data.get("uploader", "")
        if not isinstance(title, str) or not isinstance(uploader, str):
            raise ValueError(f"Track {track_id} has non-string title/uploader")

        duration = data.get("duration", data.get("durationSeconds", 0))
        # bool is an int subclass; reject it explicitly
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise ValueError(f"Track {track_id} has invalid duration: {duration!r}")
        if isinstance(duration, float) and not math.isfinite(duration):
            raise ValueError(f"Track {track_id} has non-finite duration: {duration}")
        if duration < 0:
            raise ValueError(f"Track {track_id} has negative duration: {duration}")

        return cls(id=track_id, title=title, uploader=uploader, duration=int(duration))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted/catalog shape."""
        return {
            "id": self.id,
            "title": self.title,
            "uploader": self.uploader,
            "duration": self.duration,
        }


class PlaybackPosition(NamedTuple):
    """Which track is selected and whether it is playing.

    ``current_index == -1`` means nothing is selected; ``is_playing`` is
    always False in that case.
    """

    current_index: int = -1
    is_playing: bool = False


IDLE_POSITION = PlaybackPosition()


class AppState(NamedTuple):
    """The queue plus the playback position. Replaced, never mutated."""

    queue: tuple[Track, ...] = ()
    position: PlaybackPosition = IDLE_POSITION

    @property
    def current_track(self) -> Track | None:
        """Selected track, or None when nothing is selected."""
        index = self.position.current_index
        if 0 <= index < len(self.queue):
            return self.queue[index]
        return None

    def contains(self, track_id: str) -> bool:
        """Check if a track id is already queued."""
        return any(track.id == track_id for track in self.queue)


EMPTY_STATE = AppState()
