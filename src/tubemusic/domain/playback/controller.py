"""
Playback synchronization for Tubemusic.

The controller watches the playlist store and keeps the playback device in
step with it: a selection resolves the track's stream URL and starts it, a
pause pauses the device, and a finished track dispatches ``Next``.

Every selection bumps a token. Resolutions carry the token they were started
with and are dropped if a newer selection happened while they were in
flight, so a slow lookup can never start the wrong track.
"""

import asyncio
from typing import Any, Callable, Coroutine, Optional

from loguru import logger

from tubemusic.domain.catalog.service import CatalogService
from tubemusic.domain.playlist.actions import (
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
from tubemusic.domain.playlist.models import AppState, Track
from tubemusic.domain.playlist.store import PlaylistStore
from tubemusic.exceptions import (
    CatalogUnavailable,
    PlaybackFailure,
    StalePlaybackResolution,
)

from .device import PlaybackDevice, clamp_volume
from .progress import ProgressSnapshot

IDLE_LABEL = "Tubemusic"
DEFAULT_RESOLVE_TIMEOUT = 10.0
DEFAULT_VOLUME_STEP = 0.1


class PlaybackController:
    """Drives a PlaybackDevice from PlaylistStore transitions."""

    def __init__(
        self,
        store: PlaylistStore,
        catalog: CatalogService,
        device: PlaybackDevice,
        on_now_playing: Optional[Callable[[str], None]] = None,
        on_progress: Optional[Callable[[ProgressSnapshot], None]] = None,
        on_error: Optional[Callable[[PlaybackFailure], None]] = None,
        resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT,
        volume_step: float = DEFAULT_VOLUME_STEP,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._device = device
        self._on_now_playing = on_now_playing
        self._on_progress = on_progress
        self._on_error = on_error
        self.resolve_timeout = resolve_timeout
        self.volume_step = volume_step

        self._token = 0
        # (token, track_id) of the source currently on the device
        self._loaded: Optional[tuple[int, str]] = None
        self._advanced_token: Optional[int] = None
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

        self.now_playing = IDLE_LABEL
        self.progress = ProgressSnapshot()

    # Wiring

    def attach(self) -> None:
        """Subscribe to the store and the device's notifications."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._store.subscribe(self._on_state_change)
        self._device.on_progress(self._handle_progress)
        self._device.on_ended(self._handle_ended)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def wait_idle(self) -> None:
        """Wait until no stream resolution or device start is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Detach, cancel in-flight work and stop the device."""
        self.detach()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_idle()
        self._teardown()

    @property
    def is_loading(self) -> bool:
        return bool(self._tasks)

    # Store reconciliation

    def _on_state_change(
        self, action: Action, previous: AppState, current: AppState
    ) -> None:
        match action:
            case SelectTrack() | Next() | Previous() | SelectRandom():
                if current is previous:
                    return
                track = current.current_track
                if track is not None and current.position.is_playing:
                    self._begin(track)

            case Pause():
                if previous.position.is_playing and self._loaded is not None:
                    self._device.pause()

            case Resume():
                if current is previous:
                    return
                track = current.current_track
                if track is None:
                    return
                if self._loaded == (self._token, track.id):
                    self._spawn(self._resume(self._token, track))
                else:
                    self._begin(track)

            case RemoveTrack():
                if (
                    previous.position.current_index >= 0
                    and current.position.current_index == -1
                ):
                    logger.info("Selected track removed from queue, stopping playback")
                    self._teardown()

            case AddTrack():
                pass

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _begin(self, track: Track) -> None:
        """Start a new selection: supersede older ones, release the device, resolve."""
        self._token += 1
        token = self._token
        self._release_device()
        self._set_now_playing(IDLE_LABEL)
        logger.info(f"Selecting track {track.id} ({track.title}), token={token}")
        self._spawn(self._load(token, track))

    def _release_device(self) -> None:
        if self._loaded is not None:
            self._device.stop()
            self._loaded = None
        self._set_progress(ProgressSnapshot())

    def _teardown(self) -> None:
        self._token += 1
        self._release_device()
        self._set_now_playing(IDLE_LABEL)

    def _is_stale(self, token: int) -> bool:
        return token != self._token

    def _check_current(self, token: int, track: Track) -> None:
        """Raise StalePlaybackResolution if ``track`` is no longer the selection."""
        if self._is_stale(token):
            raise StalePlaybackResolution(
                f"track {track.id} resolved for token {token}, current is {self._token}"
            )
        selected = self._store.state.current_track
        if selected is None or selected.id != track.id:
            raise StalePlaybackResolution(
                f"track {track.id} is no longer the selected track"
            )

    async def _load(self, token: int, track: Track) -> None:
        try:
            source = await asyncio.wait_for(
                self._catalog.resolve_stream_url(track.id),
                timeout=self.resolve_timeout,
            )
        except TimeoutError as e:
            if not self._is_stale(token):
                self._fail(
                    track, f"stream lookup timed out after {self.resolve_timeout}s", e
                )
            return
        except CatalogUnavailable as e:
            if not self._is_stale(token):
                self._fail(track, str(e), e)
            return
        except Exception as e:
            logger.exception(f"Stream lookup failed for track {track.id}")
            if not self._is_stale(token):
                self._fail(track, f"stream lookup error: {e}", e)
            return

        try:
            self._check_current(token, track)
        except StalePlaybackResolution as e:
            logger.debug(f"Discarding stale stream resolution: {e}")
            return

        try:
            self._device.load(source.url)
            self._loaded = (token, track.id)

            if not self._store.state.position.is_playing:
                logger.info(f"Loaded {track.id} paused")
                return

            await self._device.play()
        except Exception as e:
            logger.exception(f"Playback device failed for track {track.id}")
            if not self._is_stale(token):
                self._fail(track, f"audio device error: {e}", e)
            return

        if self._still_playing(token, track):
            self._set_now_playing(track.title)
            logger.info(f"Now playing: {track.title} ({track.id})")

    async def _resume(self, token: int, track: Track) -> None:
        try:
            await self._device.play()
        except Exception as e:
            logger.exception(f"Playback device failed to resume track {track.id}")
            if not self._is_stale(token):
                self._fail(track, f"audio device error: {e}", e)
            return
        if self._still_playing(token, track):
            self._set_now_playing(track.title)

    def _still_playing(self, token: int, track: Track) -> bool:
        """Re-check the selection once ``device.play()`` returns.

        A Pause that landed while play() was in flight was applied to the
        device first and then undone by play(); pause again to match.
        """
        if self._is_stale(token):
            return False
        if not self._store.state.position.is_playing:
            logger.debug(f"Paused while starting {track.id}, pausing device again")
            self._device.pause()
            return False
        return True

    def _fail(self, track: Track, reason: str, error: Optional[Exception]) -> None:
        """Surface a failed selection and leave it selected but not playing."""
        failure = PlaybackFailure(
            track_id=track.id, title=track.title, reason=reason, error=error
        )
        logger.error(failure.message)

        self._release_device()
        self._set_now_playing(IDLE_LABEL)
        if self._on_error is not None:
            self._on_error(failure)

        state = self._store.state
        if state.position.is_playing and state.current_track == track:
            self._store.dispatch(Pause())

    # Device notifications

    def _handle_progress(self, elapsed: float, total: float) -> None:
        if self._loaded is None or self._is_stale(self._loaded[0]):
            return
        snapshot = ProgressSnapshot.from_times(elapsed, total)
        self._set_progress(snapshot)
        if snapshot.finished:
            self._advance()

    def _handle_ended(self) -> None:
        if self._loaded is None or self._is_stale(self._loaded[0]):
            return
        self._advance()

    def _advance(self) -> None:
        """Auto-advance once per loaded source."""
        if self._advanced_token == self._token:
            return
        self._advanced_token = self._token
        logger.debug(f"Track finished, advancing (token={self._token})")
        self._set_now_playing(IDLE_LABEL)
        self._store.dispatch(Next())

    # Host-visible state

    def _set_now_playing(self, label: str) -> None:
        if label == self.now_playing:
            return
        self.now_playing = label
        if self._on_now_playing is not None:
            self._on_now_playing(label)

    def _set_progress(self, snapshot: ProgressSnapshot) -> None:
        if snapshot == self.progress:
            return
        self.progress = snapshot
        if self._on_progress is not None:
            self._on_progress(snapshot)

    # Volume

    def increase_volume(self) -> float:
        return self._change_volume(self.volume_step)

    def decrease_volume(self) -> float:
        return self._change_volume(-self.volume_step)

    def _change_volume(self, delta: float) -> float:
        volume = clamp_volume(round(self._device.volume + delta, 2))
        self._device.set_volume(volume)
        logger.debug(f"Volume set to {volume:.2f}")
        return volume
