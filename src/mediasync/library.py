"""Operations used by the upload, stream, delete and project collaborators.

MediaLibrary ties the reconciler, processor, worker pool and watcher
registry together behind the calls the rest of the studio application
makes.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from mediasync.core.datetime_utils import now_iso
from mediasync.core.mime import is_video_mime, mime_type_for
from mediasync.db import (
    FolderClassification,
    MediaFileRecord,
    TranscodingStatus,
    write_transaction,
)
from mediasync.db.connection import get_connection
from mediasync.db.queries import (
    delete_media_file_row,
    get_file_by_path,
    get_files_for_project,
    get_media_file,
    get_project,
    insert_media_file,
    list_pending_videos,
    list_projects_with_folder,
    set_media_folder,
)
from mediasync.exceptions import (
    FsSyncError,
    MediaFileExistsError,
    MediaFileNotFoundError,
    ProjectNotFoundError,
)
from mediasync.jobs.queue import TranscodeQueue
from mediasync.sync.reconciler import FolderReconciler, SyncResult
from mediasync.sync.registry import WatcherRegistry

logger = logging.getLogger(__name__)

TRANSCODED_CONTENT_TYPE = "video/mp4"


def resolve_stream_path(record: MediaFileRecord) -> Path:
    """Return the file to serve for a record.

    The transcoded output is served once processing is complete and the
    output still exists; otherwise the original is.
    """
    if (
        record.transcoding_status is TranscodingStatus.COMPLETE
        and record.transcoded_file_path
        and Path(record.transcoded_file_path).is_file()
    ):
        return Path(record.transcoded_file_path)
    return Path(record.file_path)


def stream_content_type(record: MediaFileRecord, served_path: Path) -> str:
    """Return the Content-Type for the file resolve_stream_path chose."""
    if record.transcoded_file_path and served_path == Path(
        record.transcoded_file_path
    ):
        return TRANSCODED_CONTENT_TYPE
    return record.mime_type


class MediaLibrary:
    """Collaborator-facing media operations.

    queue and registry are optional so the CLI can run passes without
    background workers; without a queue nothing is scheduled for processing.
    """

    def __init__(
        self,
        db_path: Path,
        reconciler: FolderReconciler,
        *,
        queue: TranscodeQueue | None = None,
        registry: WatcherRegistry | None = None,
    ) -> None:
        self.db_path = db_path
        self.reconciler = reconciler
        self.queue = queue
        self.registry = registry

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_file(self, file_id: int) -> MediaFileRecord:
        with get_connection(self.db_path) as conn:
            record = get_media_file(conn, file_id)
        if record is None:
            raise MediaFileNotFoundError(file_id)
        return record

    def list_files(self, project_id: int) -> list[MediaFileRecord]:
        with get_connection(self.db_path) as conn:
            if get_project(conn, project_id) is None:
                raise ProjectNotFoundError(project_id)
            return get_files_for_project(conn, project_id)

    # ------------------------------------------------------------------
    # Upload and delete
    # ------------------------------------------------------------------

    def register_upload(
        self,
        project_id: int,
        file_path: str | Path,
        *,
        original_name: str | None = None,
        folder: FolderClassification | None = None,
        mime_type: str | None = None,
    ) -> MediaFileRecord:
        """Record an uploaded file and queue it if it is a video.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            FileNotFoundError: If file_path does not exist.
            MediaFileExistsError: If the project already tracks file_path,
                typically because a sync pass found it in the watched folder
                first.
        """
        path = Path(file_path).expanduser().absolute()
        size = path.stat().st_size
        now = now_iso()
        record = MediaFileRecord(
            id=None,
            project_id=project_id,
            filename=path.name,
            original_name=original_name or path.name,
            file_path=str(path),
            file_size=size,
            mime_type=mime_type or mime_type_for(original_name or path.name),
            folder=folder,
            uploaded_at=now,
            updated_at=now,
        )

        def _insert(conn) -> int:
            if get_project(conn, project_id) is None:
                raise ProjectNotFoundError(project_id)
            existing = get_file_by_path(conn, project_id, record.file_path)
            if existing is not None:
                raise MediaFileExistsError(existing.id, record.file_path)
            return insert_media_file(conn, record)

        record.id = write_transaction(self.db_path, _insert)
        logger.info(
            "Registered upload %s for project %d as file %d",
            record.original_name,
            project_id,
            record.id,
        )

        if is_video_mime(record.mime_type):
            self._enqueue(record.id)
        return record

    def delete_media_file(self, file_id: int) -> MediaFileRecord:
        """Delete a file's original, its transcoded output, and its row.

        Raises:
            MediaFileNotFoundError: If the record does not exist.
            OSError: If the original exists but cannot be removed. The row
                is kept in that case.
        """
        record = self.get_file(file_id)

        Path(record.file_path).unlink(missing_ok=True)
        if record.transcoded_file_path:
            try:
                Path(record.transcoded_file_path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(
                    "Could not remove transcoded file %s: %s",
                    record.transcoded_file_path,
                    e,
                )

        write_transaction(
            self.db_path, lambda conn: delete_media_file_row(conn, file_id)
        )
        logger.info("Deleted media file %d (%s)", file_id, record.original_name)
        return record

    # ------------------------------------------------------------------
    # Folder sync
    # ------------------------------------------------------------------

    def _enqueue(self, file_id: int) -> None:
        if self.queue is not None:
            self.queue.submit(file_id)

    def enqueue_added(self, result: SyncResult) -> None:
        """Queue the video rows a sync pass inserted."""
        for file_id in result.added_video_ids:
            self._enqueue(file_id)

    def enqueue_pending(self) -> int:
        """Queue every video still pending, e.g. after a restart.

        Returns:
            Number of files queued.
        """
        if self.queue is None:
            return 0
        with get_connection(self.db_path) as conn:
            records = list_pending_videos(conn)
        queued = sum(
            1 for record in records if self.queue.submit(record.id) is not None
        )
        if queued:
            logger.info("Queued %d pending video(s)", queued)
        return queued

    def project_folder(self, project_id: int) -> str | None:
        with get_connection(self.db_path) as conn:
            project = get_project(conn, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project.media_folder_path

    def sync_project(
        self, project_id: int, root: str | Path | None = None
    ) -> SyncResult:
        """Run one pass for a project and queue new videos.

        Args:
            root: Folder to reconcile. Defaults to the project's assigned
                folder.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            FsSyncError: If no folder is assigned or it cannot be listed.
        """
        folder = self.project_folder(project_id)
        if root is None:
            if not folder:
                raise FsSyncError(
                    "(none)", f"project {project_id} has no media folder assigned"
                )
            root = folder
        result = self.reconciler.sync_folder(project_id, root)
        self.enqueue_added(result)
        return result

    async def assign_media_folder(
        self, project_id: int, folder: str | Path
    ) -> SyncResult:
        """Assign a project's watched folder, sync it, and (re)start its watcher.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            FsSyncError: If the folder cannot be listed. The assignment is
                kept so the watcher can be restarted once it is available.
        """
        path = Path(folder).expanduser().absolute()

        def _assign(conn) -> bool:
            return set_media_folder(conn, project_id, str(path))

        if not await asyncio.to_thread(write_transaction, self.db_path, _assign):
            raise ProjectNotFoundError(project_id)
        logger.info("Assigned media folder for project %d: %s", project_id, path)

        result = await asyncio.to_thread(self.sync_project, project_id, path)

        if self.registry is not None:
            await self.registry.start(project_id, path, initial_sync=False)
        return result

    async def initialize_watchers(self) -> int:
        """Start a watcher for every project whose folder exists.

        Returns:
            Number of watchers started.
        """
        if self.registry is None:
            return 0

        def _load():
            with get_connection(self.db_path) as conn:
                return list_projects_with_folder(conn)

        started = 0
        for project in await asyncio.to_thread(_load):
            if not Path(project.media_folder_path).is_dir():
                logger.warning(
                    "Media folder for project %d is not available: %s",
                    project.id,
                    project.media_folder_path,
                )
                continue
            watcher = await self.registry.start(project.id, project.media_folder_path)
            if watcher.is_running:
                started += 1

        logger.info("Initialized %d folder watcher(s)", started)
        return started
