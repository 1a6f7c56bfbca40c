"""Playback progress values."""

import math
from typing import NamedTuple

from tubemusic.utils.formatting import format_duration


class ProgressSnapshot(NamedTuple):
    """Elapsed/total time of the loaded source and the whole percent played."""

    elapsed: float = 0.0
    total: float = 0.0
    percent: int = 0

    @classmethod
    def from_times(cls, elapsed: float, total: float) -> "ProgressSnapshot":
        """Build a snapshot from device-reported times.

        Percent is truncated and clamped to 0-100; unknown totals give 0.
        """
        elapsed = max(0.0, float(elapsed)) if math.isfinite(elapsed) else 0.0
        if not math.isfinite(total) or total <= 0:
            return cls(elapsed=elapsed, total=0.0, percent=0)

        percent = int(elapsed / total * 100)
        return cls(elapsed=elapsed, total=float(total), percent=max(0, min(100, percent)))

    @property
    def finished(self) -> bool:
        return self.percent >= 100

    def display(self) -> str:
        """Elapsed and total time, e.g. "01:05 / 03:00"."""
        return f"{format_duration(self.elapsed)} / {format_duration(self.total)}"
