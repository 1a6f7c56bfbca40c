"""Playlist domain - queue state machine and persistence.

This domain handles:
- Track / position / state values
- The closed set of queue actions and the transition function
- Saving and restoring the queue across sessions
"""

from .actions import (
    Action,
    AddTrack,
    RemoveTrack,
    SelectTrack,
    Pause,
    Resume,
    Next,
    Previous,
    SelectRandom,
    SELECTING_ACTIONS,
)
from .models import (
    Track,
    PlaybackPosition,
    AppState,
    EMPTY_STATE,
    IDLE_POSITION,
)
from .persistence import (
    StateStorage,
    JsonFileStorage,
    PersistencePolicy,
    serialize_state,
    deserialize_state,
    DEFAULT_STATE_KEY,
)
from .store import PlaylistStore, transition

__all__ = [
    # Actions
    "Action",
    "AddTrack",
    "RemoveTrack",
    "SelectTrack",
    "Pause",
    "Resume",
    "Next",
    "Previous",
    "SelectRandom",
    "SELECTING_ACTIONS",
    # Models
    "Track",
    "PlaybackPosition",
    "AppState",
    "EMPTY_STATE",
    "IDLE_POSITION",
    # Persistence
    "StateStorage",
    "JsonFileStorage",
    "PersistencePolicy",
    "serialize_state",
    "deserialize_state",
    "DEFAULT_STATE_KEY",
    # Store
    "PlaylistStore",
    "transition",
]
