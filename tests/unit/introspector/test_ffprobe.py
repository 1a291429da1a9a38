"""Tests for FFprobeProbe against fake ffprobe executables."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from mediasync.exceptions import ProbeError
from mediasync.introspector import FFprobeProbe


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    path = tmp_path / "clip.mov"
    path.write_bytes(b"not really a movie")
    return path


class TestFFprobeProbe:
    def test_probe_parses_fixture(self, fake_ffprobe, media_file: Path) -> None:
        probe = FFprobeProbe(fake_ffprobe("hevc_1080p_50mbps"))

        result = probe.probe(media_file)

        assert result.video_codec == "hevc"
        assert result.bitrate_bps == 50_000_000
        assert result.duration_seconds == pytest.approx(30.03)

    def test_missing_file(self, fake_ffprobe, tmp_path: Path) -> None:
        probe = FFprobeProbe(fake_ffprobe("hevc_1080p_50mbps"))

        with pytest.raises(ProbeError, match="File not found"):
            probe.probe(tmp_path / "gone.mov")

    def test_directory_is_rejected(self, fake_ffprobe, tmp_path: Path) -> None:
        probe = FFprobeProbe(fake_ffprobe("hevc_1080p_50mbps"))

        with pytest.raises(ProbeError, match="Not a regular file"):
            probe.probe(tmp_path)

    def test_nonzero_exit_includes_stderr(
        self, fake_ffprobe, media_file: Path
    ) -> None:
        probe = FFprobeProbe(
            fake_ffprobe(stderr="moov atom not found\n", exit_code=1)
        )

        with pytest.raises(ProbeError, match="moov atom not found"):
            probe.probe(media_file)

    def test_invalid_json(self, fake_ffprobe, media_file: Path) -> None:
        probe = FFprobeProbe(fake_ffprobe(stdout="{not json"))

        with pytest.raises(ProbeError, match="Invalid ffprobe output"):
            probe.probe(media_file)

    def test_missing_streams_key(self, fake_ffprobe, media_file: Path) -> None:
        probe = FFprobeProbe(fake_ffprobe(stdout='{"format": {}}'))

        with pytest.raises(ProbeError, match="Missing 'streams'"):
            probe.probe(media_file)

    def test_missing_format_key(self, fake_ffprobe, media_file: Path) -> None:
        probe = FFprobeProbe(fake_ffprobe(stdout='{"streams": []}'))

        with pytest.raises(ProbeError, match="Missing 'format'"):
            probe.probe(media_file)

    def test_timeout(self, media_file: Path) -> None:
        probe = FFprobeProbe(Path("/usr/bin/ffprobe"), timeout=5)

        with patch(
            "mediasync.introspector.ffprobe.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffprobe", timeout=5),
        ):
            with pytest.raises(ProbeError, match="timed out"):
                probe.probe(media_file)

    def test_tool_cannot_start(self, tmp_path: Path, media_file: Path) -> None:
        probe = FFprobeProbe(tmp_path / "no-such-ffprobe")

        with pytest.raises(ProbeError, match="Cannot run ffprobe"):
            probe.probe(media_file)
