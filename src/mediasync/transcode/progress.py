"""Encoder progress parsing.

ffmpeg writes status lines to stderr in the form:
frame= 1234 fps= 30 q=28.0 size= 2048kB time=00:01:23.45 bitrate=... speed=2.0x

Only the output time is read; against the probed duration it gives the
completion fraction passed to progress callbacks.
"""

import re
from dataclasses import dataclass


@dataclass
class FFmpegProgress:
    """Parsed ffmpeg progress line."""

    out_time_us: int | None = None  # Output time in microseconds

    @property
    def out_time_seconds(self) -> float | None:
        if self.out_time_us is not None:
            return self.out_time_us / 1_000_000
        return None

    def fraction(self, duration_seconds: float | None) -> float | None:
        """Return completion as 0.0 to 1.0, or None if it cannot be known."""
        if duration_seconds is None or duration_seconds <= 0:
            return None
        out_time = self.out_time_seconds
        if out_time is None:
            return None
        return max(0.0, min(1.0, out_time / duration_seconds))


_TIME = re.compile(r"time=\s*(\d+):(\d+):(\d+)(?:\.(\d+))?")


def parse_stderr_progress(line: str) -> FFmpegProgress | None:
    """Parse an ffmpeg stderr progress line.

    Returns:
        Parsed FFmpegProgress, or None if the line carries no output time
        (including "time=N/A" before the first frame is written).
    """
    match = _TIME.search(line)
    if match is None:
        return None

    hours, minutes, seconds = (int(match.group(i)) for i in (1, 2, 3))
    fraction = match.group(4) or "0"
    # Scale the fractional digits to microseconds ("45" -> 450000)
    micros = int(fraction.ljust(6, "0")[:6])
    total_seconds = hours * 3600 + minutes * 60 + seconds
    return FFmpegProgress(out_time_us=total_seconds * 1_000_000 + micros)
