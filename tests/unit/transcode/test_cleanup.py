"""Tests for orphaned temp output cleanup."""

import os
import time
from pathlib import Path

from mediasync.transcode.cleanup import cleanup_orphaned_temp_files
from mediasync.transcode.executor import TEMP_PREFIX


def age(path: Path, hours: float) -> None:
    then = time.time() - hours * 3600
    os.utime(path, (then, then))


def test_removes_old_temp_outputs(media_root: Path) -> None:
    stale = media_root / f"{TEMP_PREFIX}clip-transcoded.mp4"
    stale.write_bytes(b"partial")
    age(stale, 2)

    assert cleanup_orphaned_temp_files([media_root]) == 1
    assert not stale.exists()


def test_keeps_recent_temp_outputs(media_root: Path) -> None:
    running = media_root / f"{TEMP_PREFIX}clip-transcoded.mp4"
    running.write_bytes(b"partial")

    assert cleanup_orphaned_temp_files([media_root]) == 0
    assert running.exists()


def test_ignores_other_files_and_missing_dirs(
    media_root: Path, tmp_path: Path
) -> None:
    original = media_root / "clip.mov"
    original.write_bytes(b"source")
    age(original, 48)

    assert cleanup_orphaned_temp_files([media_root, tmp_path / "gone"]) == 0
    assert original.exists()
