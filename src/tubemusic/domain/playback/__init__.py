"""Playback domain - audio device integration and playback synchronization.

This domain handles:
- The PlaybackDevice capability and its mpv implementation (JSON IPC)
- Progress snapshots reported by the device
- Keeping the device in step with the playlist store, including auto-advance
"""

from .controller import PlaybackController, IDLE_LABEL
from .device import (
    PlaybackDevice,
    MpvPlaybackDevice,
    check_mpv_available,
    send_mpv_command,
    get_mpv_property,
    clamp_volume,
)
from .progress import ProgressSnapshot

__all__ = [
    # Controller
    "PlaybackController",
    "IDLE_LABEL",
    # Device
    "PlaybackDevice",
    "MpvPlaybackDevice",
    "check_mpv_available",
    "send_mpv_command",
    "get_mpv_property",
    "clamp_volume",
    # Progress
    "ProgressSnapshot",
]
