"""Row mapping functions shared by the query modules."""

import sqlite3

from mediasync.db.types import (
    CommentRecord,
    FolderClassification,
    MediaFileRecord,
    ProjectRecord,
    TranscodingStatus,
)


def _row_to_media_file(row: sqlite3.Row) -> MediaFileRecord:
    """Convert a files row to MediaFileRecord using named columns."""
    return MediaFileRecord(
        id=row["id"],
        project_id=row["project_id"],
        filename=row["filename"],
        original_name=row["original_name"],
        file_path=row["file_path"],
        transcoded_file_path=row["transcoded_file_path"],
        file_size=row["file_size"],
        mime_type=row["mime_type"],
        duration=row["duration"],
        folder=FolderClassification(row["folder"]) if row["folder"] else None,
        transcoding_status=TranscodingStatus(row["transcoding_status"]),
        transcoding_error=row["transcoding_error"],
        transcoding_attempts=row["transcoding_attempts"],
        uploaded_at=row["uploaded_at"],
        updated_at=row["updated_at"],
    )


def _row_to_project(row: sqlite3.Row) -> ProjectRecord:
    return ProjectRecord(
        id=row["id"],
        name=row["name"],
        media_folder_path=row["media_folder_path"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_comment(row: sqlite3.Row) -> CommentRecord:
    return CommentRecord(
        id=row["id"],
        file_id=row["file_id"],
        author_name=row["author_name"],
        timecode=row["timecode"],
        comment_text=row["comment_text"],
        created_at=row["created_at"],
    )
