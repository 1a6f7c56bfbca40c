"""
Queue persistence for Tubemusic.

Saves the queue under a fixed key on every state change and restores it at
startup. Playback position is session-local: it is always written in its
reset form and never restored.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from loguru import logger

from tubemusic.exceptions import CorruptPersistedState

from .models import EMPTY_STATE, AppState, Track

DEFAULT_STATE_KEY = "tubemusic-songs"

RESET_PLAYER = {"currentSongIndex": -1, "playing": False}


class StateStorage(Protocol):
    """Key/value storage for opaque JSON records."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class JsonFileStorage:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.directory, prefix=f".{key}-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self.path_for(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


def serialize_state(state: AppState) -> dict[str, Any]:
    """Persisted shape: the queue plus a reset player section."""
    return {
        "songs": [track.to_dict() for track in state.queue],
        "player": dict(RESET_PLAYER),
    }


def deserialize_state(payload: Any) -> AppState:
    """Validate a persisted payload and rebuild the queue.

    A missing ``player`` section is accepted; whatever it holds is ignored.

    Raises:
        CorruptPersistedState: If the payload does not have the persisted shape
    """
    if not isinstance(payload, dict):
        raise CorruptPersistedState(
            f"Expected an object, got {type(payload).__name__}"
        )

    songs = payload.get("songs", [])
    if not isinstance(songs, list):
        raise CorruptPersistedState(f"'songs' must be a list, got {type(songs).__name__}")

    player = payload.get("player")
    if player is not None and not isinstance(player, dict):
        raise CorruptPersistedState("'player' must be an object when present")

    try:
        queue = tuple(Track.from_dict(song) for song in songs)
    except ValueError as e:
        raise CorruptPersistedState(str(e)) from e

    return AppState(queue=queue)


class PersistencePolicy:
    """Snapshots the queue to storage and restores it at startup."""

    def __init__(self, storage: StateStorage, key: str = DEFAULT_STATE_KEY) -> None:
        self.storage = storage
        self.key = key

    def save(self, state: AppState) -> bool:
        """Write the queue with a reset player section.

        Returns:
            True on success, False if storage failed (logged, not raised)
        """
        try:
            self.storage.set(self.key, json.dumps(serialize_state(state)))
        except (OSError, TypeError, ValueError):
            logger.exception(f"Failed to save queue state: key={self.key}")
            return False
        return True

    def restore(self) -> AppState:
        """Load the saved queue.

        Missing or malformed data yields the empty state; this never raises.
        """
        try:
            raw = self.storage.get(self.key)
        except UnicodeDecodeError as e:
            logger.warning(f"Discarding undecodable queue state under {self.key}: {e}")
            return EMPTY_STATE
        except OSError:
            logger.exception(f"Failed to read queue state: key={self.key}")
            return EMPTY_STATE

        if raw is None:
            logger.debug(f"No saved queue state under {self.key}")
            return EMPTY_STATE

        try:
            try:
                payload = json.loads(raw)
            except json.JSONDecodeError as e:
                raise CorruptPersistedState(f"Invalid JSON: {e}") from e
            state = deserialize_state(payload)
        except CorruptPersistedState as e:
            logger.warning(f"Discarding corrupt queue state under {self.key}: {e}")
            return EMPTY_STATE

        logger.info(f"Restored {len(state.queue)} queued tracks from {self.key}")
        return state

    def attach(self, store: Any) -> Callable[[], None]:
        """Write through on every state change of ``store``.

        Returns:
            Callable that stops the write-through
        """

        def on_change(action: Any, previous: AppState, current: AppState) -> None:
            if current is not previous:
                self.save(current)

        return store.subscribe(on_change)
