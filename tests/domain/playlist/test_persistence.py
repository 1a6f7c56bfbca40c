"""Tests for queue persistence."""

import json
from unittest import mock

import pytest

from tubemusic.domain.playlist import (
    AddTrack,
    AppState,
    EMPTY_STATE,
    JsonFileStorage,
    Pause,
    PersistencePolicy,
    PlaybackPosition,
    PlaylistStore,
    SelectTrack,
    deserialize_state,
)
from tubemusic.exceptions import CorruptPersistedState


@pytest.fixture
def storage(tmp_path) -> JsonFileStorage:
    return JsonFileStorage(tmp_path / "state")


@pytest.fixture
def policy(storage) -> PersistencePolicy:
    return PersistencePolicy(storage)


class TestSaveRestore:
    def test_round_trip_resets_position(self, policy, three_track_state):
        """Queue survives exactly; playback position never does."""
        state = three_track_state._replace(position=PlaybackPosition(2, True))

        assert policy.save(state) is True
        restored = policy.restore()

        assert restored.queue == three_track_state.queue
        assert restored.position == PlaybackPosition(-1, False)

    def test_written_layout(self, policy, storage, two_track_state):
        policy.save(two_track_state._replace(position=PlaybackPosition(1, True)))

        payload = json.loads(storage.path_for("tubemusic-songs").read_text())
        assert payload == {
            "songs": [
                {"id": "a1", "title": "Song A", "uploader": "Uploader A", "duration": 180},
                {"id": "b2", "title": "Song B", "uploader": "Uploader B", "duration": 90},
            ],
            "player": {"currentSongIndex": -1, "playing": False},
        }

    def test_custom_key(self, storage, two_track_state):
        policy = PersistencePolicy(storage, key="other-key")
        policy.save(two_track_state)
        assert storage.path_for("other-key").exists()
        assert PersistencePolicy(storage).restore() == EMPTY_STATE

    def test_empty_queue_round_trip(self, policy):
        policy.save(EMPTY_STATE)
        assert policy.restore() == EMPTY_STATE

    def test_no_leftover_temp_files(self, policy, storage, two_track_state):
        policy.save(two_track_state)
        policy.save(two_track_state)
        assert [p.name for p in storage.directory.iterdir()] == ["tubemusic-songs.json"]


class TestRestoreFallbacks:
    """Malformed or missing data yields the empty state and never raises."""

    def write(self, storage, text):
        storage.directory.mkdir(parents=True, exist_ok=True)
        storage.path_for("tubemusic-songs").write_text(text)

    def test_missing_record(self, policy):
        assert policy.restore() == EMPTY_STATE

    def test_invalid_json(self, policy, storage):
        self.write(storage, "{not json")
        assert policy.restore() == EMPTY_STATE

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            "songs",
            {"songs": {"id": "a1"}},
            {"songs": [{"title": "no id"}]},
            {"songs": [{"id": "a1", "title": "T", "uploader": "U", "duration": -5}]},
            {"songs": [{"id": "a1", "title": "T", "uploader": "U", "duration": "long"}]},
            {"songs": [], "player": "playing"},
        ],
    )
    def test_structurally_invalid(self, policy, storage, payload):
        self.write(storage, json.dumps(payload))
        assert policy.restore() == EMPTY_STATE

    def test_not_utf8(self, policy, storage):
        storage.directory.mkdir(parents=True, exist_ok=True)
        storage.path_for("tubemusic-songs").write_bytes(b'{"songs": [\xff\xfe]}')
        assert policy.restore() == EMPTY_STATE

    def test_infinite_duration(self, policy, storage):
        self.write(
            storage,
            '{"songs": [{"id": "a1", "title": "T", "uploader": "U", "duration": Infinity}]}',
        )
        assert policy.restore() == EMPTY_STATE

    def test_missing_player_is_tolerated(self, policy, storage):
        self.write(
            storage,
            json.dumps({"songs": [{"id": "a1", "title": "T", "uploader": "U", "duration": 10}]}),
        )
        restored = policy.restore()
        assert [t.id for t in restored.queue] == ["a1"]
        assert restored.position == PlaybackPosition()

    def test_saved_player_position_is_ignored(self, policy, storage):
        self.write(
            storage,
            json.dumps(
                {
                    "songs": [{"id": "a1", "title": "T", "uploader": "U", "duration": 10}],
                    "player": {"currentSongIndex": 0, "playing": True},
                }
            ),
        )
        assert policy.restore().position == PlaybackPosition(-1, False)

    def test_read_error(self):
        storage = mock.Mock()
        storage.get.side_effect = OSError("disk gone")
        assert PersistencePolicy(storage).restore() == EMPTY_STATE

    def test_deserialize_raises_corrupt(self):
        with pytest.raises(CorruptPersistedState):
            deserialize_state({"songs": [42]})


class TestWriteThrough:
    def test_save_failure_is_reported_not_raised(self, two_track_state):
        storage = mock.Mock()
        storage.set.side_effect = OSError("read-only")
        assert PersistencePolicy(storage).save(two_track_state) is False

    def test_attach_saves_on_every_change(self, track_a, track_b):
        storage = mock.Mock()
        policy = PersistencePolicy(storage)
        store = PlaylistStore()
        policy.attach(store)

        store.dispatch(AddTrack(track_a))
        store.dispatch(AddTrack(track_b))
        store.dispatch(SelectTrack(1))

        assert storage.set.call_count == 3
        key, value = storage.set.call_args.args
        assert key == "tubemusic-songs"
        assert json.loads(value)["player"] == {"currentSongIndex": -1, "playing": False}

    def test_unchanged_state_is_not_saved(self, two_track_state):
        storage = mock.Mock()
        store = PlaylistStore(two_track_state)
        PersistencePolicy(storage).attach(store)

        store.dispatch(Pause())  # already paused

        storage.set.assert_not_called()

    def test_detach(self, track_a):
        storage = mock.Mock()
        store = PlaylistStore()
        detach = PersistencePolicy(storage).attach(store)
        detach()
        store.dispatch(AddTrack(track_a))
        storage.set.assert_not_called()

    def test_restart_restores_queue_only(self, storage, track_a, track_b):
        store = PlaylistStore(PersistencePolicy(storage).restore())
        PersistencePolicy(storage).attach(store)
        store.dispatch(AddTrack(track_a))
        store.dispatch(AddTrack(track_b))
        store.dispatch(SelectTrack(0))

        restarted = PersistencePolicy(storage).restore()
        assert restarted == AppState(queue=(track_a, track_b))
