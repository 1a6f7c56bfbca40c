"""Actions accepted by the playlist store.

The set is closed: ``Action`` is the union of every variant and the store
matches it exhaustively.
"""

from dataclasses import dataclass
from typing import Union

from .models import Track


@dataclass(frozen=True)
class AddTrack:
    track: Track


@dataclass(frozen=True)
class RemoveTrack:
    track_id: str


@dataclass(frozen=True)
class SelectTrack:
    index: int


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class SelectRandom:
    pass


Action = Union[
    AddTrack, RemoveTrack, SelectTrack, Pause, Resume, Next, Previous, SelectRandom
]

# Actions that pick a (possibly identical) track and start it from the top
SELECTING_ACTIONS = (SelectTrack, Next, Previous, SelectRandom)
