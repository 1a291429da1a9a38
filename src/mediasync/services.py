"""Construction of the long-lived pipeline objects.

build_processor is shared with the one-shot CLI commands. build_services
wires the full daemon: reconciler, processor, worker pool, watcher registry,
library facade and the optional scheduled retry task.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from mediasync.config import MediaSyncConfig
from mediasync.config.loader import get_default_db_path
from mediasync.db import initialize_database
from mediasync.db.connection import get_connection
from mediasync.db.queries import list_projects_with_folder
from mediasync.introspector import FFprobeProbe
from mediasync.jobs import MediaProcessor, RetryTask, TranscodeQueue
from mediasync.library import MediaLibrary
from mediasync.sync import FolderReconciler, WatcherRegistry
from mediasync.sync.watcher import EventSource
from mediasync.tools import find_tool
from mediasync.transcode import TranscodeExecutor
from mediasync.transcode.cleanup import cleanup_orphaned_temp_files

logger = logging.getLogger(__name__)


def resolve_db_path(config: MediaSyncConfig) -> Path:
    return config.database_path or get_default_db_path()


def build_processor(config: MediaSyncConfig, db_path: Path) -> MediaProcessor:
    """Build a processor using the configured or discovered tools.

    Raises:
        ToolNotFoundError: If ffmpeg or ffprobe cannot be located.
    """
    ffprobe = find_tool("ffprobe", config.get_tool_path("ffprobe"))
    ffmpeg = find_tool("ffmpeg", config.get_tool_path("ffmpeg"))
    tc = config.transcode
    return MediaProcessor(
        db_path,
        FFprobeProbe(ffprobe, timeout=tc.probe_timeout_seconds),
        TranscodeExecutor(
            ffmpeg,
            timeout_base_seconds=tc.timeout_base_seconds,
            timeout_duration_multiplier=tc.timeout_duration_multiplier,
        ),
        max_attempts=tc.max_attempts,
    )


@dataclass
class MediaServices:
    """The pipeline objects owned by one daemon process."""

    config: MediaSyncConfig
    db_path: Path
    reconciler: FolderReconciler
    processor: MediaProcessor
    library: MediaLibrary
    queue: TranscodeQueue | None = None
    registry: WatcherRegistry | None = None
    retry_task: RetryTask | None = None

    _retry_handle: asyncio.Task[None] | None = field(
        default=None, init=False, repr=False
    )

    async def start(self) -> None:
        """Start daemon background work.

        Rows left processing by a previous process are failed first, so the
        retry task and operators can pick them up again. Videos still pending
        are queued once the watchers have run their initial passes.
        """
        await asyncio.to_thread(self.processor.recover_interrupted)
        cleaned = await asyncio.to_thread(self._cleanup_temp_outputs)
        if cleaned:
            logger.info("Cleaned %d orphaned temp file(s) from previous runs", cleaned)
        await self.library.initialize_watchers()
        await asyncio.to_thread(self.library.enqueue_pending)
        if self.retry_task is not None:
            self._retry_handle = asyncio.create_task(
                self.retry_task.run(), name="retry-task"
            )

    def _cleanup_temp_outputs(self) -> int:
        with get_connection(self.db_path) as conn:
            folders = [
                Path(project.media_folder_path)
                for project in list_projects_with_folder(conn)
            ]
        return cleanup_orphaned_temp_files(folders)

    async def stop(self) -> None:
        """Stop watchers and the retry task, then drain the worker pool.

        Queued work that has not started is dropped; running encodes finish.
        """
        if self.registry is not None:
            await self.registry.stop_all()
        if self.retry_task is not None:
            self.retry_task.stop()
        if self._retry_handle is not None:
            try:
                await asyncio.wait_for(self._retry_handle, timeout=5.0)
            except asyncio.TimeoutError:
                self._retry_handle.cancel()
            self._retry_handle = None
        if self.queue is not None:
            await asyncio.to_thread(
                self.queue.shutdown, wait=True, cancel_pending=True
            )


def build_services(
    config: MediaSyncConfig,
    *,
    db_path: Path | None = None,
    processor: MediaProcessor | None = None,
    event_source: EventSource | None = None,
) -> MediaServices:
    """Wire the daemon pipeline for config.

    The retry task is only built when retry.enabled is set.

    Args:
        db_path: Database path. Defaults to the configured or default path.
        processor: Pre-built processor, used instead of locating tools.
        event_source: Filesystem event source for watchers.

    Raises:
        ToolNotFoundError: If no processor is given and a tool is missing.
    """
    db_path = db_path or resolve_db_path(config)
    initialize_database(db_path)

    reconciler = FolderReconciler(db_path)
    processor = processor or build_processor(config, db_path)

    queue = TranscodeQueue(processor, max_workers=config.transcode.max_concurrent)
    library = MediaLibrary(db_path, reconciler, queue=queue)
    registry = WatcherRegistry(
        reconciler,
        config.watcher,
        event_source=event_source,
        on_synced=library.enqueue_added,
    )
    library.registry = registry

    retry_task = None
    if config.retry.enabled:
        retry_task = RetryTask(
            db_path=db_path,
            queue=queue,
            max_attempts=config.transcode.max_attempts,
            interval_seconds=config.retry.interval_seconds,
        )

    return MediaServices(
        config=config,
        db_path=db_path,
        reconciler=reconciler,
        processor=processor,
        library=library,
        queue=queue,
        registry=registry,
        retry_task=retry_task,
    )
