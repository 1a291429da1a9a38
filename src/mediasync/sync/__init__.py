"""Folder reconciliation and watching."""

from mediasync.sync.reconciler import FolderReconciler, SyncResult, is_ignored_name
from mediasync.sync.registry import WatcherRegistry
from mediasync.sync.stability import StabilityWindow
from mediasync.sync.watcher import FolderWatcher, WatcherState, watchfiles_source

__all__ = [
    "FolderReconciler",
    "FolderWatcher",
    "StabilityWindow",
    "SyncResult",
    "WatcherRegistry",
    "WatcherState",
    "is_ignored_name",
    "watchfiles_source",
]
