"""Per-project folder watcher.

Each FolderWatcher owns two asyncio tasks:

- a producer that reads filesystem events for the top level of the watched
  folder and pushes changed names onto a bounded queue without blocking,
- a single consumer that waits for the changed files to stop growing, then
  runs one reconciliation pass in a worker thread.

A single consumer per project means passes never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from watchfiles import awatch

from mediasync.config.models import WatcherConfig
from mediasync.exceptions import FsSyncError
from mediasync.logging import media_context
from mediasync.sync.reconciler import FolderReconciler, SyncResult, is_ignored_name
from mediasync.sync.stability import StabilityWindow, snapshot_sizes

logger = logging.getLogger(__name__)

# Yields batches of (change, path) pairs, like watchfiles.awatch
EventSource = Callable[[Path, asyncio.Event], AsyncIterator[Iterable[tuple[Any, str]]]]

SyncedCallback = Callable[[SyncResult], None]

# Queue marker for a full pass without a specific changed file
_FULL_SYNC = ""


def watchfiles_source(debounce_ms: int) -> EventSource:
    """Return an event source backed by watchfiles, depth 0 only."""

    def source(root: Path, stop_event: asyncio.Event):
        return awatch(
            root,
            stop_event=stop_event,
            debounce=debounce_ms,
            recursive=False,
            ignore_permission_denied=True,
        )

    return source


class WatcherState(Enum):
    STARTING = "starting"
    RUNNING = "running"
    DOWN = "down"
    STOPPED = "stopped"


class FolderWatcher:
    """Watches one project's folder and reconciles it after writes settle."""

    def __init__(
        self,
        project_id: int,
        root: Path,
        reconciler: FolderReconciler,
        config: WatcherConfig,
        *,
        event_source: EventSource | None = None,
        on_synced: SyncedCallback | None = None,
    ) -> None:
        self.project_id = project_id
        self.root = Path(root).expanduser().absolute()
        self._reconciler = reconciler
        self._config = config
        self._event_source = event_source or watchfiles_source(config.debounce_ms)
        self._on_synced = on_synced

        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=config.queue_size)
        self._stop_event = asyncio.Event()
        self._producer: asyncio.Task[None] | None = None
        self._consumer: asyncio.Task[None] | None = None

        self.state = WatcherState.STARTING
        self.last_error: str | None = None
        self.last_result: SyncResult | None = None
        self.dropped_events = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, *, initial_sync: bool = True) -> None:
        """Start watching.

        If the folder is missing the watcher goes straight to DOWN.
        With initial_sync, one pass runs right away to pick up changes made
        while nothing was watching.
        """
        if not self.root.is_dir():
            self._mark_down(f"Watched folder is not available: {self.root}")
            return

        self._producer = asyncio.create_task(
            self._produce(), name=f"watch-producer-{self.project_id}"
        )
        self._consumer = asyncio.create_task(
            self._consume(), name=f"watch-consumer-{self.project_id}"
        )
        self._producer.add_done_callback(self._on_task_done)
        self._consumer.add_done_callback(self._on_task_done)
        self.state = WatcherState.RUNNING

        if initial_sync:
            self._enqueue(_FULL_SYNC)

        logger.info(
            "Started watching folder for project %d: %s", self.project_id, self.root
        )

    async def stop(self) -> None:
        """Stop watching and wait for both tasks to exit.

        A pass already running in its worker thread finishes; its result is
        persisted but no further passes start.
        """
        was_running = self.state is WatcherState.RUNNING
        self._stop_event.set()
        tasks = [t for t in (self._producer, self._consumer) if t is not None]
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self.state is not WatcherState.DOWN:
            self.state = WatcherState.STOPPED
        if was_running:
            logger.info("Stopped watching folder for project %d", self.project_id)

    @property
    def is_running(self) -> bool:
        return self.state is WatcherState.RUNNING

    def status(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "root": str(self.root),
            "state": self.state.value,
            "last_error": self.last_error,
            "dropped_events": self.dropped_events,
            "last_sync": self.last_result.to_dict() if self.last_result else None,
        }

    def _mark_down(self, error: str) -> None:
        if self.state is WatcherState.DOWN:
            return
        self.state = WatcherState.DOWN
        self.last_error = error
        self._stop_event.set()
        logger.error(
            "Watcher for project %d is down, media folder not syncing: %s",
            self.project_id,
            error,
        )
        current = asyncio.current_task()
        for task in (self._producer, self._consumer):
            if task is not None and task is not current and not task.done():
                task.cancel()

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or self._stop_event.is_set():
            return
        error = task.exception()
        if error is not None:
            self._mark_down(f"{type(error).__name__}: {error}")
        else:
            self._mark_down("Filesystem event source ended unexpectedly")

    # ------------------------------------------------------------------
    # Producer
    # ------------------------------------------------------------------

    def _enqueue(self, name: str) -> None:
        try:
            self._queue.put_nowait(name)
        except asyncio.QueueFull:
            # Every pass covers the whole folder, so a dropped event only
            # coalesces into the pass already waiting.
            self.dropped_events += 1
            logger.debug(
                "Event queue full for project %d, dropping event for %s",
                self.project_id,
                name or "<full sync>",
            )

    async def _produce(self) -> None:
        async for changes in self._event_source(self.root, self._stop_event):
            for _change, raw_path in changes:
                path = Path(raw_path)
                if path.parent != self.root or is_ignored_name(path.name):
                    continue
                self._enqueue(path.name)
            if self._stop_event.is_set():
                break

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    def _drain(self, names: set[str]) -> bool:
        """Move queued names into names. Returns True if any were queued."""
        drained = False
        while True:
            try:
                names.add(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return drained
            drained = True

    async def _wait_until_stable(self, names: set[str]) -> None:
        """Wait until no tracked file changed size for the stability window."""
        window = StabilityWindow(self._config.stability_window_seconds)
        window.observe(await asyncio.to_thread(snapshot_sizes, self.root, names))

        while not window.is_stable:
            await asyncio.sleep(
                min(self._config.poll_interval_seconds, window.remaining)
            )
            if self._drain(names):
                window.touch()
            window.observe(await asyncio.to_thread(snapshot_sizes, self.root, names))

    async def _consume(self) -> None:
        with media_context(project_id=self.project_id):
            while not self._stop_event.is_set():
                names = {await self._queue.get()}
                self._drain(names)

                tracked = {name for name in names if name}
                if tracked:
                    await self._wait_until_stable(tracked)

                try:
                    result = await asyncio.to_thread(
                        self._reconciler.sync_folder, self.project_id, self.root
                    )
                except FsSyncError as e:
                    if not self.root.is_dir():
                        self._mark_down(str(e))
                        return
                    logger.warning("Sync pass aborted: %s", e)
                    continue
                except Exception:
                    logger.exception("Sync pass failed")
                    continue

                self.last_result = result
                if self._on_synced is not None:
                    try:
                        self._on_synced(result)
                    except Exception:
                        logger.exception("Post-sync callback failed")
