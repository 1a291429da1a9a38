"""ffprobe-based implementation of the MediaProbe protocol."""

import json
import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from mediasync.exceptions import ProbeError
from mediasync.introspector.parsers import parse_probe_output
from mediasync.introspector.types import ProbeResult

logger = logging.getLogger(__name__)


class FFprobeProbe:
    """ffprobe-based implementation of the MediaProbe protocol."""

    def __init__(self, ffprobe_path: Path, timeout: int = 60) -> None:
        """Initialize the probe.

        Args:
            ffprobe_path: Path to the ffprobe executable.
            timeout: Seconds before a hung ffprobe is killed.
        """
        self._ffprobe_path = ffprobe_path
        self._timeout = timeout

    def probe(self, path: Path) -> ProbeResult:
        """Extract metadata from a media file.

        Raises:
            ProbeError: If the file cannot be probed.
        """
        if not path.exists():
            raise ProbeError(f"File not found: {path}")
        if not path.is_file():
            raise ProbeError(f"Not a regular file: {path}")

        try:
            data = self._run_ffprobe(path)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out for {path} after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise ProbeError(f"ffprobe failed for {path}: {detail}") from e
        except json.JSONDecodeError as e:
            raise ProbeError(f"Invalid ffprobe output for {path}: {e}") from e
        except OSError as e:
            raise ProbeError(f"Cannot run ffprobe for {path}: {e}") from e

        result = parse_probe_output(data)
        logger.debug(
            "Probed %s: video=%s codec=%s %sx%s bitrate=%d duration=%s",
            path.name,
            result.has_video_stream,
            result.video_codec,
            result.width,
            result.height,
            result.bitrate_bps,
            result.duration_seconds,
        )
        return result

    def _run_ffprobe(self, path: Path) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.CalledProcessError: If ffprobe returns non-zero.
            json.JSONDecodeError: If output is not valid JSON.
            ProbeError: If output is missing required keys.
        """
        result = subprocess.run(  # nosec B603 - ffprobe path comes from config
            [
                str(self._ffprobe_path),
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                str(path),
            ],
            capture_output=True,
            text=True,
            errors="replace",
            check=True,
            timeout=self._timeout,
        )
        data = json.loads(result.stdout)

        if not isinstance(data, dict) or "streams" not in data:
            raise ProbeError(
                f"Missing 'streams' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        if "format" not in data:
            raise ProbeError(
                f"Missing 'format' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )

        return data
