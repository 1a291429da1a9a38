"""Supervised encoder process.

TranscodeExecutor runs ffmpeg as a child process against the fixed web
profile. stderr is read on a helper thread so the supervising loop can
enforce a timeout and report progress. Output is written to a hidden temp
file beside the target and moved into place only after a zero exit.
"""

from __future__ import annotations

import logging
import os
import queue
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from mediasync.exceptions import TranscodeError
from mediasync.transcode.profile import (
    WEB_PROFILE,
    TranscodeProfile,
    build_ffmpeg_command,
)
from mediasync.transcode.progress import parse_stderr_progress

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".mediasync_tmp_"

ProgressCallback = Callable[[float], None]


def create_temp_output(output_path: Path, prefix: str = TEMP_PREFIX) -> Path:
    """Return the temp path used while the encoder writes output_path."""
    return output_path.with_name(f"{prefix}{output_path.name}")


def cleanup_temp_file(path: Path) -> None:
    """Remove a temporary file, logging any errors."""
    if path.exists():
        try:
            path.unlink()
            logger.debug("Cleaned up temp file: %s", path)
        except OSError as e:
            logger.warning("Could not clean up temp file %s: %s", path, e)


def compute_timeout(
    duration_seconds: float | None,
    base_timeout: int,
    duration_multiplier: float,
) -> float | None:
    """Compute the encoder timeout for an input.

    Returns:
        max(base_timeout, duration * multiplier) in seconds, base_timeout if
        the duration is unknown, or None (no limit) if base_timeout <= 0.
    """
    if base_timeout <= 0:
        return None
    if duration_seconds is None or duration_seconds <= 0:
        return float(base_timeout)
    return max(float(base_timeout), duration_seconds * duration_multiplier)


@dataclass
class ProcessOutcome:
    """Result of one supervised encoder run."""

    returncode: int
    stderr: str
    timed_out: bool = False


class TranscodeExecutor:
    """Runs the encoder for one input at a time.

    Instances hold no per-run state and may be shared between worker threads.
    """

    STDERR_DRAIN_TIMEOUT: float = 5.0
    POLL_INTERVAL: float = 0.2

    def __init__(
        self,
        ffmpeg_path: Path,
        *,
        timeout_base_seconds: int = 600,
        timeout_duration_multiplier: float = 4.0,
        profile: TranscodeProfile = WEB_PROFILE,
    ) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._timeout_base = timeout_base_seconds
        self._timeout_multiplier = timeout_duration_multiplier
        self._profile = profile

    def transcode(
        self,
        input_path: Path,
        output_path: Path,
        on_progress: ProgressCallback | None = None,
        duration_seconds: float | None = None,
    ) -> Path:
        """Encode input_path to output_path with the web profile.

        Args:
            input_path: Source media file. Never modified.
            output_path: Final output location; an existing file is replaced.
            on_progress: Called with completion fraction (0.0 to 1.0) as the
                encoder reports progress. Requires duration_seconds.
            duration_seconds: Probed input duration, used for progress and to
                scale the timeout.

        Returns:
            output_path.

        Raises:
            TranscodeError: If the encoder exits non-zero, times out, cannot
                be started, or produces no output.
        """
        temp_path = create_temp_output(output_path)
        cmd = build_ffmpeg_command(
            self._ffmpeg_path, input_path, temp_path, self._profile
        )
        timeout = compute_timeout(
            duration_seconds, self._timeout_base, self._timeout_multiplier
        )

        logger.info("Starting transcode: %s -> %s", input_path, output_path)
        logger.debug("Encoder command: %s", " ".join(cmd))

        try:
            outcome = self._run_with_timeout(
                cmd, timeout, on_progress, duration_seconds
            )
        except OSError as e:
            cleanup_temp_file(temp_path)
            raise TranscodeError(f"Could not start encoder: {e}") from e
        except BaseException:
            cleanup_temp_file(temp_path)
            raise

        if outcome.timed_out:
            cleanup_temp_file(temp_path)
            raise TranscodeError(
                f"Encoder timed out after {timeout:.0f}s",
                returncode=outcome.returncode,
                diagnostics=outcome.stderr,
                timed_out=True,
            )

        if outcome.returncode != 0:
            cleanup_temp_file(temp_path)
            raise TranscodeError(
                f"Encoder exited with status {outcome.returncode}",
                returncode=outcome.returncode,
                diagnostics=outcome.stderr,
            )

        if not temp_path.exists() or temp_path.stat().st_size == 0:
            cleanup_temp_file(temp_path)
            raise TranscodeError(
                "Encoder exited successfully but produced no output",
                returncode=outcome.returncode,
                diagnostics=outcome.stderr,
            )

        try:
            os.replace(temp_path, output_path)
        except OSError as e:
            cleanup_temp_file(temp_path)
            raise TranscodeError(
                f"Could not move encoder output into place: {e}"
            ) from e

        if on_progress is not None:
            self._notify(on_progress, 1.0)

        logger.info("Transcode complete: %s", output_path)
        return output_path

    @staticmethod
    def _notify(on_progress: ProgressCallback, fraction: float) -> None:
        try:
            on_progress(fraction)
        except Exception as e:
            logger.warning("Progress callback error: %s", e)

    def _run_with_timeout(
        self,
        cmd: list[str],
        timeout: float | None,
        on_progress: ProgressCallback | None,
        duration_seconds: float | None,
    ) -> ProcessOutcome:
        """Run the encoder with a timeout and threaded stderr reading."""
        process = subprocess.Popen(  # nosec B603 - command built from fixed profile
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )

        stderr_lines: list[str] = []
        stderr_queue: queue.Queue[str | None] = queue.Queue()

        def read_stderr() -> None:
            try:
                assert process.stderr is not None
                for line in process.stderr:
                    stderr_queue.put(line)
            except (ValueError, OSError) as e:
                # Pipe closed after a kill
                logger.debug("Stderr reader stopped: %s", e)
            finally:
                stderr_queue.put(None)

        reader_thread = threading.Thread(target=read_stderr, daemon=True)
        reader_thread.start()

        start_time = time.monotonic()
        last_fraction = -1.0
        timed_out = False
        reader_done = False

        try:
            while True:
                if timeout is not None and time.monotonic() - start_time >= timeout:
                    timed_out = True
                    break

                try:
                    line = stderr_queue.get(timeout=self.POLL_INTERVAL)
                except queue.Empty:
                    if process.poll() is not None and not reader_thread.is_alive():
                        break
                    continue

                if line is None:
                    reader_done = True
                    break
                stderr_lines.append(line)

                if on_progress is None:
                    continue
                progress = parse_stderr_progress(line)
                if progress is None:
                    continue
                fraction = progress.fraction(duration_seconds)
                if fraction is not None and fraction > last_fraction:
                    last_fraction = fraction
                    self._notify(on_progress, fraction)
        except BaseException:
            process.kill()
            process.wait()
            raise

        if timed_out:
            logger.warning("Encoder timed out after %.0f seconds, killing", timeout)
            process.kill()
            if process.stderr:
                try:
                    process.stderr.close()
                except OSError:
                    pass
            process.wait()
            reader_thread.join(timeout=2.0)
            return ProcessOutcome(
                returncode=-1, stderr="".join(stderr_lines), timed_out=True
            )

        process.wait()
        if not reader_done:
            reader_thread.join(timeout=self.STDERR_DRAIN_TIMEOUT)
        while True:
            try:
                line = stderr_queue.get_nowait()
            except queue.Empty:
                break
            if line is not None:
                stderr_lines.append(line)

        return ProcessOutcome(
            returncode=process.returncode, stderr="".join(stderr_lines)
        )
