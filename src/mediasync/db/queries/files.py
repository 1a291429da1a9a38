"""Media file queries.

Status transitions are single conditional UPDATE statements so that a
transition either applies completely or not at all, and so that a second
claimant for the same file loses.

Note:
    These functions do NOT commit. Callers manage transactions.
"""

import sqlite3

from mediasync.core.datetime_utils import now_iso
from mediasync.db.types import MediaFileRecord, TranscodingStatus

from .helpers import _row_to_media_file

INTERRUPTED_ERROR = "Processing interrupted before completion"

# ==========================================================================
# Row lifecycle
# ==========================================================================


def insert_media_file(conn: sqlite3.Connection, record: MediaFileRecord) -> int:
    """Insert a new media file record.

    Returns:
        The ID of the inserted record.

    Raises:
        sqlite3.IntegrityError: If the project already has a row for the path.
    """
    cursor = conn.execute(
        """
        INSERT INTO files (
            project_id, filename, original_name, file_path,
            transcoded_file_path, file_size, mime_type, duration, folder,
            transcoding_status, transcoding_error, transcoding_attempts,
            uploaded_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            record.project_id,
            record.filename,
            record.original_name,
            record.file_path,
            record.transcoded_file_path,
            record.file_size,
            record.mime_type,
            record.duration,
            record.folder.value if record.folder else None,
            record.transcoding_status.value,
            record.transcoding_error,
            record.transcoding_attempts,
            record.uploaded_at,
            record.updated_at,
        ),
    )
    return cursor.lastrowid


def insert_discovered_file(
    conn: sqlite3.Connection,
    project_id: int,
    file_path: str,
    filename: str,
    file_size: int,
    mime_type: str,
) -> int | None:
    """Insert a pending row for a file found on disk.

    Returns:
        The new row ID, or None if the project already tracks the path.
    """
    now = now_iso()
    cursor = conn.execute(
        """
        INSERT INTO files (
            project_id, filename, original_name, file_path, file_size,
            mime_type, transcoding_status, uploaded_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, 'pending', ?, ?)
        ON CONFLICT(project_id, file_path) DO NOTHING
        """,
        (project_id, filename, filename, file_path, file_size, mime_type, now, now),
    )
    if cursor.rowcount == 0:
        return None
    return cursor.lastrowid


def get_media_file(conn: sqlite3.Connection, file_id: int) -> MediaFileRecord | None:
    cursor = conn.execute("SELECT * FROM files WHERE id = ?", (file_id,))
    row = cursor.fetchone()
    return _row_to_media_file(row) if row else None


def get_files_for_project(
    conn: sqlite3.Connection, project_id: int
) -> list[MediaFileRecord]:
    """Return all media files for a project, oldest first."""
    cursor = conn.execute(
        "SELECT * FROM files WHERE project_id = ? ORDER BY id", (project_id,)
    )
    return [_row_to_media_file(row) for row in cursor.fetchall()]


def get_file_by_path(
    conn: sqlite3.Connection, project_id: int, file_path: str
) -> MediaFileRecord | None:
    cursor = conn.execute(
        "SELECT * FROM files WHERE project_id = ? AND file_path = ?",
        (project_id, file_path),
    )
    row = cursor.fetchone()
    return _row_to_media_file(row) if row else None


def update_file_size(conn: sqlite3.Connection, file_id: int, file_size: int) -> None:
    conn.execute(
        "UPDATE files SET file_size = ?, updated_at = ? WHERE id = ?",
        (file_size, now_iso(), file_id),
    )


def delete_media_file_row(conn: sqlite3.Connection, file_id: int) -> bool:
    """Delete a media file row; dependent comments cascade.

    Returns:
        True if a row was deleted.
    """
    cursor = conn.execute("DELETE FROM files WHERE id = ?", (file_id,))
    return cursor.rowcount > 0


# ==========================================================================
# Status transitions
# ==========================================================================


def claim_for_processing(
    conn: sqlite3.Connection, file_id: int, *, from_failed: bool = False
) -> bool:
    """Move a file into processing.

    Only pending files are claimable, or failed files when from_failed is set
    (the retry path). Any stale transcoded path and error are cleared.

    Returns:
        True if this caller won the claim.
    """
    allowed = [TranscodingStatus.PENDING.value]
    if from_failed:
        allowed.append(TranscodingStatus.FAILED.value)
    placeholders = ", ".join("?" for _ in allowed)
    cursor = conn.execute(
        f"""
        UPDATE files
        SET transcoding_status = 'processing',
            transcoded_file_path = NULL,
            transcoding_error = NULL,
            updated_at = ?
        WHERE id = ? AND transcoding_status IN ({placeholders})
        """,  # nosec B608 - placeholders only
        (now_iso(), file_id, *allowed),
    )
    return cursor.rowcount == 1


def mark_complete(
    conn: sqlite3.Connection,
    file_id: int,
    *,
    duration: float | None,
    transcoded_file_path: str | None,
) -> bool:
    """Resolve a processing file to complete.

    Returns:
        True if the row was in processing and has been updated.
    """
    cursor = conn.execute(
        """
        UPDATE files
        SET transcoding_status = 'complete',
            transcoded_file_path = ?,
            duration = ?,
            transcoding_error = NULL,
            updated_at = ?
        WHERE id = ? AND transcoding_status = 'processing'
        """,
        (transcoded_file_path, duration, now_iso(), file_id),
    )
    return cursor.rowcount == 1


def mark_failed(
    conn: sqlite3.Connection,
    file_id: int,
    error: str,
    *,
    duration: float | None = None,
) -> bool:
    """Resolve a processing file to failed and count the attempt.

    A probed duration, when known, is kept so the UI can still show it.

    Returns:
        True if the row was in processing and has been updated.
    """
    cursor = conn.execute(
        """
        UPDATE files
        SET transcoding_status = 'failed',
            transcoding_error = ?,
            transcoding_attempts = transcoding_attempts + 1,
            duration = COALESCE(?, duration),
            updated_at = ?
        WHERE id = ? AND transcoding_status = 'processing'
        """,
        (error, duration, now_iso(), file_id),
    )
    return cursor.rowcount == 1


def recover_interrupted(conn: sqlite3.Connection) -> int:
    """Fail every row left in processing by a previous process.

    Returns:
        Number of rows recovered.
    """
    cursor = conn.execute(
        """
        UPDATE files
        SET transcoding_status = 'failed',
            transcoding_error = ?,
            transcoding_attempts = transcoding_attempts + 1,
            updated_at = ?
        WHERE transcoding_status = 'processing'
        """,
        (INTERRUPTED_ERROR, now_iso()),
    )
    return cursor.rowcount


def list_retryable_failed(
    conn: sqlite3.Connection, max_attempts: int
) -> list[MediaFileRecord]:
    """Return failed video files that have not exhausted their attempts."""
    cursor = conn.execute(
        """
        SELECT * FROM files
        WHERE transcoding_status = 'failed'
          AND transcoding_attempts < ?
          AND mime_type LIKE 'video/%'
        ORDER BY updated_at ASC
        """,
        (max_attempts,),
    )
    return [_row_to_media_file(row) for row in cursor.fetchall()]


def list_pending_videos(conn: sqlite3.Connection) -> list[MediaFileRecord]:
    """Return video files still waiting for a first processing attempt."""
    cursor = conn.execute(
        """
        SELECT * FROM files
        WHERE transcoding_status = 'pending'
          AND mime_type LIKE 'video/%'
        ORDER BY uploaded_at ASC, id ASC
        """
    )
    return [_row_to_media_file(row) for row in cursor.fetchall()]


def count_by_status(conn: sqlite3.Connection) -> dict[str, int]:
    """Return a count of files for every transcoding status."""
    counts = {status.value: 0 for status in TranscodingStatus}
    cursor = conn.execute(
        "SELECT transcoding_status, COUNT(*) FROM files GROUP BY transcoding_status"
    )
    for status, count in cursor.fetchall():
        counts[status] = count
    return counts
