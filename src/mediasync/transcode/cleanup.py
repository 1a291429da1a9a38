"""Removal of encoder temp outputs left behind by a killed process.

Temp outputs (.mediasync_tmp_*) are written beside the original, so only
the top level of each watched folder is searched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path

from mediasync.transcode.executor import TEMP_PREFIX

logger = logging.getLogger(__name__)


def cleanup_orphaned_temp_files(
    search_dirs: Iterable[Path],
    max_age_hours: float = 1.0,
) -> int:
    """Remove temp outputs older than max_age_hours.

    The age cutoff keeps files belonging to an encode that is still running.

    Returns:
        Number of files removed.
    """
    cleaned = 0
    cutoff_time = time.time() - (max_age_hours * 3600)

    for search_dir in search_dirs:
        if not search_dir.is_dir():
            continue

        for temp_file in search_dir.glob(f"{TEMP_PREFIX}*"):
            if not temp_file.is_file():
                continue
            try:
                if temp_file.stat().st_mtime < cutoff_time:
                    temp_file.unlink()
                    logger.info("Cleaned orphaned temp file: %s", temp_file)
                    cleaned += 1
            except OSError as e:
                logger.warning("Could not clean temp file %s: %s", temp_file, e)

    return cleaned
