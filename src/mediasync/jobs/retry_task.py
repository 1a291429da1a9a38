"""Background retry of failed files for the daemon.

Periodically re-queues failed video files whose attempt count is still under
the limit. Disabled by default; enable with retry.enabled in config.toml or
MEDIASYNC_RETRY_ENABLED=true.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from mediasync.db.connection import get_connection
from mediasync.db.queries import list_retryable_failed
from mediasync.jobs.queue import TranscodeQueue

logger = logging.getLogger(__name__)

# Number of consecutive failures before marking unhealthy
_UNHEALTHY_THRESHOLD = 3


class RetryTask:
    """Background task that periodically retries failed files.

    Usage:
        task = RetryTask(db_path=path, queue=queue, interval_seconds=3600)
        asyncio.create_task(task.run())
        # ... later ...
        task.stop()
    """

    def __init__(
        self,
        *,
        db_path: Path,
        queue: TranscodeQueue,
        max_attempts: int,
        interval_seconds: int,
        startup_delay_seconds: float | None = None,
    ) -> None:
        self.db_path = db_path
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.startup_delay_seconds = (
            interval_seconds if startup_delay_seconds is None else startup_delay_seconds
        )
        self._queue = queue
        self._stop_event = asyncio.Event()
        self._last_run: datetime | None = None
        self._running = False
        self._consecutive_failures = 0
        self._is_healthy = True

    async def run(self) -> None:
        """Run the retry loop until stop() is called."""
        if self._running:
            logger.warning("Retry task already running")
            return
        self._running = True

        logger.info(
            "Retry task started (first run in %.0f seconds, interval %d seconds)",
            self.startup_delay_seconds,
            self.interval_seconds,
        )

        try:
            if await self._wait_or_stop(self.startup_delay_seconds):
                return

            while not self._stop_event.is_set():
                await self.run_once()
                if await self._wait_or_stop(self.interval_seconds):
                    break
        except asyncio.CancelledError:
            pass
        finally:
            self._running = False
            logger.info("Retry task stopped")

    async def _wait_or_stop(self, timeout: float) -> bool:
        """Wait for timeout seconds. Returns True if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def stop(self) -> None:
        """Signal the retry task to stop."""
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_run(self) -> datetime | None:
        return self._last_run

    @property
    def is_healthy(self) -> bool:
        return self._is_healthy

    async def run_once(self) -> int:
        """Queue every retryable failed file once.

        Returns:
            Number of files queued.
        """
        start_time = datetime.now(timezone.utc)

        def _load() -> list[int]:
            with get_connection(self.db_path) as conn:
                return [
                    record.id
                    for record in list_retryable_failed(conn, self.max_attempts)
                ]

        try:
            file_ids = await asyncio.to_thread(_load)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._consecutive_failures += 1
            if self._consecutive_failures >= _UNHEALTHY_THRESHOLD and self._is_healthy:
                self._is_healthy = False
                logger.error(
                    "Retry task marked unhealthy after %d consecutive failures",
                    self._consecutive_failures,
                )
            logger.exception("Retry run failed: %s", e)
            return 0

        self._last_run = start_time
        self._consecutive_failures = 0
        if not self._is_healthy:
            self._is_healthy = True
            logger.info("Retry task recovered, marking healthy")

        queued = 0
        for file_id in file_ids:
            if self._queue.submit(file_id, retry=True) is not None:
                queued += 1

        if queued:
            logger.info("Retry run queued %d failed file(s)", queued)
        else:
            logger.debug("Retry run found no retryable files")
        return queued
