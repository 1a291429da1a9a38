"""Bounded transcode worker pool.

Encodes run out-of-process; the pool threads only supervise them. The pool
size is a global cap across all projects, and a file already queued or
running is not queued twice.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from mediasync.db import MediaFileRecord
from mediasync.jobs.processor import MediaProcessor

logger = logging.getLogger(__name__)


class TranscodeQueue:
    """Queue of file IDs processed by a fixed number of worker threads."""

    def __init__(self, processor: MediaProcessor, max_workers: int = 2) -> None:
        self._processor = processor
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="transcode"
        )
        self._lock = threading.Lock()
        self._in_flight: set[int] = set()
        self._closed = False

    def submit(
        self, file_id: int, *, retry: bool = False
    ) -> Future[MediaFileRecord | None] | None:
        """Queue a file for processing.

        Returns:
            A future for the processed record, or None if the file is already
            queued or running or the queue is shut down.
        """
        with self._lock:
            if self._closed:
                logger.warning("Transcode queue closed, dropping file %d", file_id)
                return None
            if file_id in self._in_flight:
                logger.debug("File %d already queued, skipping duplicate", file_id)
                return None
            self._in_flight.add(file_id)

        future = self._executor.submit(self._work, file_id, retry)
        future.add_done_callback(lambda _f: self._release(file_id))
        logger.info("Queued file %d for processing", file_id)
        return future

    def _release(self, file_id: int) -> None:
        with self._lock:
            self._in_flight.discard(file_id)

    def _work(self, file_id: int, retry: bool) -> MediaFileRecord | None:
        try:
            return self._processor.process_file(file_id, retry=retry)
        except Exception:
            logger.exception("Processing of file %d failed", file_id)
            return None

    def in_flight(self) -> set[int]:
        """Return IDs of files currently queued or running."""
        with self._lock:
            return set(self._in_flight)

    def shutdown(self, *, wait: bool = True, cancel_pending: bool = False) -> None:
        """Stop accepting work and release the workers.

        Running encodes finish (and resolve to complete or failed) before this
        returns when wait is set. Pending entries are dropped with
        cancel_pending; their rows stay pending or failed.
        """
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)
