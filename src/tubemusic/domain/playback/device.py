"""
Audio output for Tubemusic.

``PlaybackDevice`` is the capability the controller drives.
``MpvPlaybackDevice`` implements it with an idle mpv process controlled over
its JSON IPC socket; a watcher task turns mpv's playback properties into
progress and end-of-track notifications.
"""

import asyncio
import json
import os
import socket
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from loguru import logger

from tubemusic.core.config import PlayerConfig

ProgressCallback = Callable[[float, float], None]
EndedCallback = Callable[[], None]

SOCKET_TIMEOUT = 5.0
POLL_INTERVAL = 0.25


def clamp_volume(volume: float) -> float:
    return max(0.0, min(1.0, volume))


class PlaybackDevice(Protocol):
    """Single-source audio output."""

    @property
    def volume(self) -> float: ...

    def load(self, url: str) -> None: ...

    async def play(self) -> None: ...

    def pause(self) -> None: ...

    def stop(self) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def on_progress(self, callback: ProgressCallback) -> None: ...

    def on_ended(self, callback: EndedCallback) -> None: ...


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _ipc_request(socket_path: Optional[str], command: list[Any]) -> Optional[dict]:
    """Send one JSON IPC command and return mpv's decoded reply."""
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(2.0)
            sock.connect(socket_path)
            sock.sendall((json.dumps({"command": command}) + "\n").encode("utf-8"))
            response = sock.recv(4096).decode("utf-8").strip()
    except OSError:
        return None

    # mpv may interleave event lines; the reply is the line carrying "error"
    for line in response.splitlines():
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if "error" in data:
            return data
    return None


def send_mpv_command(socket_path: Optional[str], command: list[Any]) -> bool:
    """Send JSON IPC command to MPV."""
    reply = _ipc_request(socket_path, command)
    return reply is not None and reply.get("error") == "success"


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV."""
    reply = _ipc_request(socket_path, ["get_property", property_name])
    if reply is not None and reply.get("error") == "success":
        return reply.get("data")
    return None


class MpvPlaybackDevice:
    """PlaybackDevice backed by an idle mpv process.

    load, pause, stop and set_volume send their IPC command on the calling
    thread so the device has changed before the store notification that
    asked for it returns. The socket is local and each request is bounded
    by the IPC timeout. play() and progress polling run in a worker thread.
    """

    def __init__(
        self, config: PlayerConfig, poll_interval: float = POLL_INTERVAL
    ) -> None:
        if config.mpv_socket_path:
            self.socket_path = config.mpv_socket_path
        else:
            self.socket_path = str(
                Path(tempfile.gettempdir()) / f"tubemusic-mpv-{os.getpid()}"
            )
        self.poll_interval = poll_interval
        self.process: Optional[subprocess.Popen] = None
        self._volume = clamp_volume(config.volume)
        self._loaded_url: Optional[str] = None
        self._playing = False
        self._ended_reported = False
        self._progress_callbacks: list[ProgressCallback] = []
        self._ended_callbacks: list[EndedCallback] = []
        self._watcher: Optional[asyncio.Task] = None

    @property
    def volume(self) -> float:
        return self._volume

    def is_running(self) -> bool:
        if not self.process or self.process.poll() is not None:
            return False
        return os.path.exists(self.socket_path)

    def start(self) -> bool:
        """Launch mpv with JSON IPC and wait for its socket.

        Returns:
            True when mpv is up and answering on the socket
        """
        logger.info(f"Starting MPV player with socket: {self.socket_path}")

        try:
            if os.path.exists(self.socket_path):
                logger.debug(f"Removing existing socket: {self.socket_path}")
                os.unlink(self.socket_path)

            self.process = subprocess.Popen(
                [
                    "mpv",
                    "--idle=yes",
                    "--no-video",
                    "--no-terminal",
                    f"--input-ipc-server={self.socket_path}",
                    f"--volume={round(self._volume * 100)}",
                    "--keep-open=yes",
                    "--load-scripts=no",
                ],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )

            started = time.time()
            while not os.path.exists(self.socket_path):
                if time.time() - started > SOCKET_TIMEOUT:
                    logger.error(f"MPV socket creation timeout after {SOCKET_TIMEOUT}s")
                    self.process.kill()
                    return False
                time.sleep(0.1)

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start MPV: {e}")
            return False

        if not send_mpv_command(self.socket_path, ["get_property", "idle-active"]):
            logger.error("MPV socket connection test failed")
            self.process.kill()
            return False

        logger.info("MPV started successfully")
        return True

    async def aclose(self) -> None:
        """Stop the watcher and the mpv process."""
        if self._watcher is not None:
            self._watcher.cancel()
            try:
                await self._watcher
            except asyncio.CancelledError:
                pass
            self._watcher = None

        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                logger.warning("MPV process did not exit cleanly")

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                logger.warning(f"Could not remove MPV socket: {self.socket_path}")

    def on_progress(self, callback: ProgressCallback) -> None:
        self._progress_callbacks.append(callback)

    def on_ended(self, callback: EndedCallback) -> None:
        self._ended_callbacks.append(callback)

    def load(self, url: str) -> None:
        """Replace the current source with ``url``, paused."""
        send_mpv_command(self.socket_path, ["set_property", "pause", True])
        if not send_mpv_command(self.socket_path, ["loadfile", url, "replace"]):
            raise OSError(f"MPV refused to load {url}")
        self._loaded_url = url
        self._playing = False
        self._ended_reported = False
        logger.debug(f"Loaded source: {url}")

    async def play(self) -> None:
        """Unpause the loaded source and make sure progress is being watched."""
        if self._loaded_url is None:
            logger.warning("play() called with no source loaded")
            return
        await asyncio.to_thread(
            send_mpv_command, self.socket_path, ["set_property", "pause", False]
        )
        self._playing = True
        if self._watcher is None or self._watcher.done():
            self._watcher = asyncio.get_running_loop().create_task(self._watch())

    def pause(self) -> None:
        send_mpv_command(self.socket_path, ["set_property", "pause", True])
        self._playing = False

    def stop(self) -> None:
        if self._loaded_url is not None:
            send_mpv_command(self.socket_path, ["stop"])
        self._loaded_url = None
        self._playing = False

    def set_volume(self, volume: float) -> None:
        self._volume = clamp_volume(volume)
        send_mpv_command(
            self.socket_path, ["set_property", "volume", round(self._volume * 100)]
        )

    def _poll(self) -> tuple[Optional[float], Optional[float], bool]:
        position = get_mpv_property(self.socket_path, "time-pos")
        duration = get_mpv_property(self.socket_path, "duration")
        eof = get_mpv_property(self.socket_path, "eof-reached")
        return position, duration, eof is True

    async def _watch(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            if not self._playing or self._loaded_url is None:
                continue

            url = self._loaded_url
            position, duration, eof = await asyncio.to_thread(self._poll)
            # Source may have been replaced while polling
            if url != self._loaded_url or not self._playing:
                continue

            if position is not None and duration:
                for callback in list(self._progress_callbacks):
                    callback(float(position), float(duration))

            if eof and not self._ended_reported:
                self._ended_reported = True
                self._playing = False
                for callback in list(self._ended_callbacks):
                    callback()
