"""Registry of active folder watchers.

Constructed once at process start and passed by reference. Owns the
lifetime of every FolderWatcher; start, stop and stop_all are serialized by
an asyncio lock so concurrent calls cannot leak a handle.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from mediasync.config.models import WatcherConfig
from mediasync.sync.reconciler import FolderReconciler
from mediasync.sync.watcher import EventSource, FolderWatcher, SyncedCallback

logger = logging.getLogger(__name__)


class WatcherRegistry:
    """One FolderWatcher per project."""

    def __init__(
        self,
        reconciler: FolderReconciler,
        config: WatcherConfig,
        *,
        event_source: EventSource | None = None,
        on_synced: SyncedCallback | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._config = config
        self._event_source = event_source
        self._on_synced = on_synced
        self._watchers: dict[int, FolderWatcher] = {}
        self._lock = asyncio.Lock()

    async def start(
        self, project_id: int, root: str | Path, *, initial_sync: bool = True
    ) -> FolderWatcher:
        """Start watching root for a project, replacing any existing watcher."""
        async with self._lock:
            previous = self._watchers.pop(project_id, None)
            if previous is not None:
                await previous.stop()

            watcher = FolderWatcher(
                project_id,
                Path(root),
                self._reconciler,
                self._config,
                event_source=self._event_source,
                on_synced=self._on_synced,
            )
            self._watchers[project_id] = watcher
            await watcher.start(initial_sync=initial_sync)
            return watcher

    async def stop(self, project_id: int) -> bool:
        """Stop a project's watcher. Returns False if none was registered."""
        async with self._lock:
            watcher = self._watchers.pop(project_id, None)
            if watcher is None:
                return False
            await watcher.stop()
            return True

    async def stop_all(self) -> None:
        """Stop every watcher. Used at shutdown."""
        async with self._lock:
            watchers = list(self._watchers.values())
            self._watchers.clear()
            if watchers:
                await asyncio.gather(
                    *(watcher.stop() for watcher in watchers), return_exceptions=True
                )
                logger.info("Stopped %d folder watcher(s)", len(watchers))

    def get(self, project_id: int) -> FolderWatcher | None:
        return self._watchers.get(project_id)

    def __len__(self) -> int:
        return len(self._watchers)

    def running_count(self) -> int:
        return sum(1 for w in self._watchers.values() if w.is_running)

    def states(self) -> dict[int, dict[str, Any]]:
        """Return status for every registered watcher, keyed by project ID."""
        return {
            project_id: watcher.status()
            for project_id, watcher in sorted(self._watchers.items())
        }
