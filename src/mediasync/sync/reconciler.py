"""Folder reconciliation.

Diffs the top-level files of a project's watched folder against the
project's media file rows and applies the minimal set of changes. Runs for
the same project are serialized.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from dataclasses import dataclass, field
from pathlib import Path

from mediasync.core.mime import is_video_mime, mime_type_for
from mediasync.db import write_transaction
from mediasync.db.queries import (
    delete_media_file_row,
    get_files_for_project,
    insert_discovered_file,
    touch_project,
    update_file_size,
)
from mediasync.exceptions import FsSyncError
from mediasync.transcode.profile import is_transcoded_artifact

logger = logging.getLogger(__name__)


def is_ignored_name(name: str) -> bool:
    """Return True for names the pipeline must never ingest.

    Hidden files cover in-progress encoder output; the transcoded suffix
    covers finished output written beside the original.
    """
    return name.startswith(".") or is_transcoded_artifact(name)


@dataclass
class DiskEntry:
    """A regular file found at depth 0 of a watched folder."""

    name: str
    path: str
    size: int


@dataclass
class SyncResult:
    """Outcome of one reconciliation pass.

    The name lists are disjoint. added_video_ids holds the new rows that
    should be queued for processing. removed_outputs holds the transcoded
    files left behind by removed rows, deleted once the pass commits.
    """

    project_id: int
    root: str
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    total_files: int = 0
    added_video_ids: list[int] = field(default_factory=list)
    removed_outputs: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "root": self.root,
            "added": self.added,
            "updated": self.updated,
            "removed": self.removed,
            "unchanged": self.unchanged,
            "total_files": self.total_files,
        }


def list_top_level_files(root: Path) -> list[DiskEntry]:
    """List regular files directly inside root.

    Subdirectories and ignored names are skipped. An entry that vanishes or
    cannot be stat'ed mid-listing is skipped with a warning.

    Raises:
        FsSyncError: If root itself cannot be listed.
    """
    try:
        iterator = os.scandir(root)
    except FileNotFoundError as e:
        raise FsSyncError(str(root), "folder does not exist") from e
    except NotADirectoryError as e:
        raise FsSyncError(str(root), "not a directory") from e
    except PermissionError as e:
        raise FsSyncError(str(root), "permission denied") from e
    except OSError as e:
        raise FsSyncError(str(root), e.strerror or str(e)) from e

    entries: list[DiskEntry] = []
    try:
        with iterator:
            for entry in iterator:
                if is_ignored_name(entry.name):
                    continue
                try:
                    if not entry.is_file():
                        continue
                    size = entry.stat().st_size
                except OSError as e:
                    logger.warning("Skipping unreadable entry %s: %s", entry.path, e)
                    continue
                entries.append(DiskEntry(name=entry.name, path=entry.path, size=size))
    except OSError as e:
        raise FsSyncError(str(root), e.strerror or str(e)) from e

    entries.sort(key=lambda e: e.name)
    return entries


def _remove_outputs(paths: list[str]) -> None:
    """Delete transcoded outputs whose source rows a pass removed."""
    for path in paths:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove transcoded file %s: %s", path, e)
        else:
            logger.debug("Removed transcoded file %s", path)


class FolderReconciler:
    """Applies folder listings to the database, one pass per project at a time."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, project_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(project_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[project_id] = lock
            return lock

    def sync_folder(self, project_id: int, root: str | Path) -> SyncResult:
        """Reconcile a project's rows with the top level of root.

        Only rows whose file lives directly in root are compared, so rows for
        uploads stored elsewhere are left alone.

        Raises:
            FsSyncError: If root cannot be listed. Nothing is written.
        """
        root_path = Path(root).expanduser().absolute()

        with self._lock_for(project_id):
            entries = list_top_level_files(root_path)
            result = write_transaction(
                self.db_path,
                lambda conn: self._apply(conn, project_id, root_path, entries),
            )
            _remove_outputs(result.removed_outputs)

        if result.changed:
            logger.info(
                "Synced project %d folder %s: %d added, %d updated, %d removed, "
                "%d unchanged",
                project_id,
                root_path,
                len(result.added),
                len(result.updated),
                len(result.removed),
                len(result.unchanged),
            )
        else:
            logger.debug(
                "Synced project %d folder %s: no changes (%d files)",
                project_id,
                root_path,
                result.total_files,
            )
        return result

    def _apply(
        self,
        conn: sqlite3.Connection,
        project_id: int,
        root: Path,
        entries: list[DiskEntry],
    ) -> SyncResult:
        result = SyncResult(
            project_id=project_id, root=str(root), total_files=len(entries)
        )

        existing = {
            record.file_path: record
            for record in get_files_for_project(conn, project_id)
            if Path(record.file_path).parent == root
        }
        on_disk = {entry.path for entry in entries}

        for entry in entries:
            record = existing.get(entry.path)
            if record is None:
                mime_type = mime_type_for(entry.name)
                file_id = insert_discovered_file(
                    conn, project_id, entry.path, entry.name, entry.size, mime_type
                )
                if file_id is None:
                    # Inserted by another process since the rows were loaded
                    result.unchanged.append(entry.name)
                    continue
                result.added.append(entry.name)
                if is_video_mime(mime_type):
                    result.added_video_ids.append(file_id)
            elif record.file_size != entry.size:
                update_file_size(conn, record.id, entry.size)
                result.updated.append(entry.name)
            else:
                result.unchanged.append(entry.name)

        for path, record in existing.items():
            if path not in on_disk:
                delete_media_file_row(conn, record.id)
                result.removed.append(record.original_name)
                if record.transcoded_file_path:
                    result.removed_outputs.append(record.transcoded_file_path)

        if result.changed:
            touch_project(conn, project_id)

        return result
