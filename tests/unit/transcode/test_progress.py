"""Tests for encoder progress parsing."""

import pytest

from mediasync.transcode.progress import FFmpegProgress, parse_stderr_progress

PROGRESS_LINE = (
    "frame= 1234 fps= 30 q=28.0 size=    2048kB time=00:01:23.45 "
    "bitrate= 201.3kbits/s speed=2.01x"
)


class TestParseStderrProgress:
    def test_full_line(self) -> None:
        progress = parse_stderr_progress(PROGRESS_LINE)

        assert progress == FFmpegProgress(out_time_us=83_450_000)
        assert progress.out_time_seconds == pytest.approx(83.45)

    def test_non_progress_line(self) -> None:
        assert parse_stderr_progress("Stream #0:0: Video: hevc (Main 10)") is None

    def test_time_not_available(self) -> None:
        line = "frame=    0 fps=0.0 size=N/A time=N/A bitrate=N/A speed=N/A"

        assert parse_stderr_progress(line) is None

    def test_start_of_encode(self) -> None:
        progress = parse_stderr_progress(
            "frame=    0 fps=0.0 time=00:00:00.00 speed=N/A"
        )

        assert progress is not None
        assert progress.out_time_us == 0


class TestFraction:
    def test_fraction_of_duration(self) -> None:
        progress = FFmpegProgress(out_time_us=15_000_000)

        assert progress.fraction(30.0) == pytest.approx(0.5)

    def test_clamped_to_one(self) -> None:
        progress = FFmpegProgress(out_time_us=31_000_000)

        assert progress.fraction(30.0) == 1.0

    def test_unknown_duration(self) -> None:
        progress = FFmpegProgress(out_time_us=15_000_000)

        assert progress.fraction(None) is None
        assert progress.fraction(0) is None

    def test_unknown_time(self) -> None:
        assert FFmpegProgress().fraction(30.0) is None
