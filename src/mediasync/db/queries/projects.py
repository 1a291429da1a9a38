"""Project queries.

Projects are owned by the project-management collaborator. This core reads
the watched folder assignment and bumps updated_at after a sync.
"""

import sqlite3

from mediasync.core.datetime_utils import now_iso
from mediasync.db.types import ProjectRecord

from .helpers import _row_to_project


def insert_project(
    conn: sqlite3.Connection, name: str, media_folder_path: str | None = None
) -> int:
    now = now_iso()
    cursor = conn.execute(
        """
        INSERT INTO projects (name, media_folder_path, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        """,
        (name, media_folder_path, now, now),
    )
    return cursor.lastrowid


def get_project(conn: sqlite3.Connection, project_id: int) -> ProjectRecord | None:
    cursor = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,))
    row = cursor.fetchone()
    return _row_to_project(row) if row else None


def set_media_folder(
    conn: sqlite3.Connection, project_id: int, media_folder_path: str | None
) -> bool:
    """Assign (or clear) a project's watched folder.

    Returns:
        True if the project exists.
    """
    cursor = conn.execute(
        "UPDATE projects SET media_folder_path = ?, updated_at = ? WHERE id = ?",
        (media_folder_path, now_iso(), project_id),
    )
    return cursor.rowcount > 0


def touch_project(conn: sqlite3.Connection, project_id: int) -> None:
    conn.execute(
        "UPDATE projects SET updated_at = ? WHERE id = ?", (now_iso(), project_id)
    )


def list_projects_with_folder(conn: sqlite3.Connection) -> list[ProjectRecord]:
    """Return projects that have a watched folder assigned."""
    cursor = conn.execute(
        """
        SELECT * FROM projects
        WHERE media_folder_path IS NOT NULL AND media_folder_path != ''
        ORDER BY id
        """
    )
    return [_row_to_project(row) for row in cursor.fetchall()]
