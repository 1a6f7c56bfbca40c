"""Tests for the mpv playback device (IPC calls patched out)."""

import asyncio
from unittest import mock

import pytest

from tubemusic.core.config import PlayerConfig
from tubemusic.domain.playback.device import MpvPlaybackDevice

SEND = "tubemusic.domain.playback.device.send_mpv_command"
GET = "tubemusic.domain.playback.device.get_mpv_property"


@pytest.fixture
def device(tmp_path) -> MpvPlaybackDevice:
    config = PlayerConfig(mpv_socket_path=str(tmp_path / "mpv.sock"), volume=0.5)
    return MpvPlaybackDevice(config, poll_interval=0.01)


class TestCommands:
    def test_set_volume_scales_and_clamps(self, device):
        with mock.patch(SEND, return_value=True) as send:
            device.set_volume(1.4)
            assert device.volume == 1.0
            send.assert_called_with(device.socket_path, ["set_property", "volume", 100])

            device.set_volume(0.25)
            send.assert_called_with(device.socket_path, ["set_property", "volume", 25])

    def test_load_replaces_paused(self, device):
        with mock.patch(SEND, return_value=True) as send:
            device.load("https://stream.test/a.webm")

        assert send.call_args_list == [
            mock.call(device.socket_path, ["set_property", "pause", True]),
            mock.call(device.socket_path, ["loadfile", "https://stream.test/a.webm", "replace"]),
        ]

    def test_load_failure_raises(self, device):
        with mock.patch(SEND, return_value=False):
            with pytest.raises(OSError):
                device.load("https://stream.test/a.webm")

    def test_pause_is_sent_before_returning(self, device):
        with mock.patch(SEND, return_value=True) as send:
            device.load("https://stream.test/a.webm")
            send.reset_mock()
            device.pause()
            send.assert_called_once_with(device.socket_path, ["set_property", "pause", True])

    def test_stop_without_source_sends_nothing(self, device):
        with mock.patch(SEND, return_value=True) as send:
            device.stop()
        send.assert_not_called()

    def test_play_without_source_is_ignored(self, device):
        with mock.patch(SEND, return_value=True) as send:
            asyncio.run(device.play())
        send.assert_not_called()


class TestWatcher:
    def test_reports_progress_and_end(self, device):
        progress = []
        ended = []
        device.on_progress(lambda elapsed, total: progress.append((elapsed, total)))
        device.on_ended(lambda: ended.append(True))

        values = {"time-pos": 30.0, "duration": 60.0, "eof-reached": False}

        async def run():
            with mock.patch(SEND, return_value=True), mock.patch(
                GET, side_effect=lambda path, name: values[name]
            ):
                device.load("https://stream.test/a.webm")
                await device.play()
                await asyncio.sleep(0.05)
                values.update({"time-pos": 60.0, "eof-reached": True})
                await asyncio.sleep(0.05)
                await device.aclose()

        asyncio.run(run())

        assert (30.0, 60.0) in progress
        assert ended == [True]
