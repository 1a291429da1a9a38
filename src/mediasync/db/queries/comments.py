"""Comment queries for the review collaborator.

Comments reference files with ON DELETE CASCADE, so removing a file row
removes its comments.
"""

import sqlite3

from mediasync.core.datetime_utils import now_iso
from mediasync.db.types import CommentRecord

from .helpers import _row_to_comment


def insert_comment(
    conn: sqlite3.Connection,
    file_id: int,
    author_name: str,
    comment_text: str,
    timecode: str | None = None,
) -> int:
    cursor = conn.execute(
        """
        INSERT INTO comments (file_id, author_name, timecode, comment_text, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (file_id, author_name, timecode, comment_text, now_iso()),
    )
    return cursor.lastrowid


def get_comments_for_file(
    conn: sqlite3.Connection, file_id: int
) -> list[CommentRecord]:
    cursor = conn.execute(
        "SELECT * FROM comments WHERE file_id = ? ORDER BY id", (file_id,)
    )
    return [_row_to_comment(row) for row in cursor.fetchall()]
