"""
Playlist state machine for Tubemusic.

``transition`` is the single place the queue and playback position change.
``PlaylistStore`` holds the current state for a session, applies actions in
dispatch order and notifies subscribers after each transition.
"""

import random
from collections import deque
from typing import Callable, Optional, assert_never

from loguru import logger

from tubemusic.exceptions import InvalidSelection

from .actions import (
    Action,
    AddTrack,
    Next,
    Pause,
    Previous,
    RemoveTrack,
    Resume,
    SelectRandom,
    SelectTrack,
)
from .models import EMPTY_STATE, IDLE_POSITION, AppState, PlaybackPosition

Listener = Callable[[Action, AppState, AppState], None]


def _remove_track(state: AppState, track_id: str) -> AppState:
    """Drop the first track with ``track_id``, keeping the selection on the same track.

    Removing the selected track clears the selection.
    """
    removed_at = next(
        (i for i, track in enumerate(state.queue) if track.id == track_id), None
    )
    if removed_at is None:
        return state

    queue = state.queue[:removed_at] + state.queue[removed_at + 1 :]
    current = state.position.current_index

    if removed_at == current:
        position = IDLE_POSITION
    elif removed_at < current:
        position = state.position._replace(current_index=current - 1)
    else:
        position = state.position

    return AppState(queue=queue, position=position)


def _select(state: AppState, index: int) -> AppState:
    return state._replace(position=PlaybackPosition(current_index=index, is_playing=True))


def transition(
    state: AppState, action: Action, rng: Optional[random.Random] = None
) -> AppState:
    """Apply an action and return the resulting state.

    Actions that do not change anything return ``state`` itself.

    Args:
        state: Current state
        action: Action to apply
        rng: Random source for SelectRandom (module-level random by default)

    Returns:
        New state

    Raises:
        InvalidSelection: SelectTrack index outside the queue
    """
    length = len(state.queue)
    current = state.position.current_index

    match action:
        case AddTrack(track=track):
            return state._replace(queue=state.queue + (track,))

        case RemoveTrack(track_id=track_id):
            return _remove_track(state, track_id)

        case SelectTrack(index=index):
            if not 0 <= index < length:
                raise InvalidSelection(index, length)
            return _select(state, index)

        case Pause():
            if not state.position.is_playing:
                return state
            return state._replace(position=state.position._replace(is_playing=False))

        case Resume():
            if length == 0 or state.position.is_playing:
                return state
            return _select(state, current if current >= 0 else 0)

        case Next():
            if length == 0:
                return state
            return _select(state, (current + 1) % length)

        case Previous():
            if length == 0:
                return state
            # From "nothing selected" (-1) this lands on the last track
            return _select(state, (current - 1) % length if current >= 0 else length - 1)

        case SelectRandom():
            if length == 0:
                return state
            return _select(state, (rng or random).randrange(length))

        case _:
            assert_never(action)


class PlaylistStore:
    """Session-owned container for the authoritative AppState."""

    def __init__(
        self,
        initial_state: AppState = EMPTY_STATE,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._state = initial_state
        self._rng = rng
        self._listeners: list[Listener] = []
        self._pending: deque[Action] = deque()
        self._dispatching = False

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(action, previous, current)``.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> AppState:
        """Apply an action and notify subscribers.

        Dispatches made by a listener are queued and applied once the
        current notification round finishes, so transitions stay in
        dispatch order.

        Raises:
            InvalidSelection: SelectTrack index outside the queue
        """
        self._pending.append(action)
        if self._dispatching:
            return self._state

        self._dispatching = True
        try:
            while self._pending:
                self._apply(self._pending.popleft())
        finally:
            self._dispatching = False
            self._pending.clear()

        return self._state

    def _apply(self, action: Action) -> None:
        previous = self._state
        current = transition(previous, action, self._rng)
        self._state = current
        logger.debug(
            f"{type(action).__name__}: position={tuple(current.position)}, "
            f"queue={len(current.queue)}"
        )

        for listener in list(self._listeners):
            try:
                listener(action, previous, current)
            except Exception:
                logger.exception(
                    f"Store listener failed: listener={listener!r}, action={action!r}"
                )
