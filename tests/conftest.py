"""Shared fixtures and test doubles for Tubemusic tests."""

import asyncio
from typing import Callable, Optional

import pytest

from tubemusic.domain.catalog import StreamSource
from tubemusic.domain.playlist import AppState, Track
from tubemusic.exceptions import CatalogUnavailable


def stream_url(track_id: str) -> str:
    return f"https://stream.test/{track_id}.webm"


class FakeCatalog:
    """Catalog double whose resolutions can be held open or made to fail."""

    def __init__(self, results: Optional[list[Track]] = None) -> None:
        self.results = results or []
        self.failures: set[str] = set()
        self.search_failure: Optional[Exception] = None
        self.gates: dict[str, asyncio.Event] = {}
        self.resolve_calls: list[str] = []
        self.search_calls: list[tuple[str, int]] = []

    def hold(self, track_id: str) -> asyncio.Event:
        """Block resolution of ``track_id`` until the returned event is set."""
        gate = asyncio.Event()
        self.gates[track_id] = gate
        return gate

    async def search(self, query: str, limit: int) -> list[Track]:
        self.search_calls.append((query, limit))
        if self.search_failure is not None:
            raise self.search_failure
        return self.results[:limit]

    async def resolve_stream_url(self, track_id: str) -> StreamSource:
        self.resolve_calls.append(track_id)
        gate = self.gates.get(track_id)
        if gate is not None:
            await gate.wait()
        if track_id in self.failures:
            raise CatalogUnavailable(f"unknown track {track_id}")
        return StreamSource(url=stream_url(track_id))


class FakeDevice:
    """PlaybackDevice double recording every call."""

    def __init__(self, volume: float = 0.5) -> None:
        self.events: list[tuple] = []
        self.loaded: Optional[str] = None
        self.playing = False
        self._volume = volume
        self._progress: list[Callable[[float, float], None]] = []
        self._ended: list[Callable[[], None]] = []

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def loads(self) -> list[str]:
        return [event[1] for event in self.events if event[0] == "load"]

    def load(self, url: str) -> None:
        self.events.append(("load", url))
        self.loaded = url
        self.playing = False

    async def play(self) -> None:
        self.events.append(("play", self.loaded))
        self.playing = True

    def pause(self) -> None:
        self.events.append(("pause",))
        self.playing = False

    def stop(self) -> None:
        self.events.append(("stop",))
        self.loaded = None
        self.playing = False

    def set_volume(self, volume: float) -> None:
        self.events.append(("volume", volume))
        self._volume = volume

    def on_progress(self, callback: Callable[[float, float], None]) -> None:
        self._progress.append(callback)

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended.append(callback)

    def emit_progress(self, elapsed: float, total: float) -> None:
        for callback in list(self._progress):
            callback(elapsed, total)

    def emit_ended(self) -> None:
        for callback in list(self._ended):
            callback()


@pytest.fixture
def track_a() -> Track:
    return Track(id="a1", title="Song A", uploader="Uploader A", duration=180)


@pytest.fixture
def track_b() -> Track:
    return Track(id="b2", title="Song B", uploader="Uploader B", duration=90)


@pytest.fixture
def track_c() -> Track:
    return Track(id="c3", title="Song C", uploader="Uploader C", duration=3725)


@pytest.fixture
def two_track_state(track_a: Track, track_b: Track) -> AppState:
    return AppState(queue=(track_a, track_b))


@pytest.fixture
def three_track_state(track_a: Track, track_b: Track, track_c: Track) -> AppState:
    return AppState(queue=(track_a, track_b, track_c))
