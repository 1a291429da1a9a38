"""Database schema definition.

Defines the projects, files and comments tables. The comments table belongs
to the review collaborator; it lives here so that deleting a file row
cascades to its comments.
"""

import sqlite3

SCHEMA_VERSION = 3

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS _meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    media_folder_path TEXT,
    created_at TEXT NOT NULL,   -- ISO 8601 UTC timestamp
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    filename TEXT NOT NULL,
    original_name TEXT NOT NULL,
    file_path TEXT NOT NULL,
    transcoded_file_path TEXT,
    file_size INTEGER NOT NULL DEFAULT 0,
    mime_type TEXT NOT NULL DEFAULT 'application/octet-stream',
    duration REAL,
    folder TEXT CHECK (folder IS NULL OR folder IN ('inbound', 'outbound')),
    transcoding_status TEXT NOT NULL DEFAULT 'pending'
        CHECK (transcoding_status IN ('pending', 'processing', 'complete', 'failed')),
    transcoding_error TEXT,
    transcoding_attempts INTEGER NOT NULL DEFAULT 0
        CHECK (transcoding_attempts >= 0),
    uploaded_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
    UNIQUE(project_id, file_path)
);

CREATE INDEX IF NOT EXISTS idx_files_project_id ON files(project_id);
CREATE INDEX IF NOT EXISTS idx_files_status ON files(transcoding_status);

CREATE TABLE IF NOT EXISTS comments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    file_id INTEGER NOT NULL,
    author_name TEXT NOT NULL,
    timecode TEXT,
    comment_text TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (file_id) REFERENCES files(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_comments_file_id ON comments(file_id);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the database schema if it doesn't exist.

    Args:
        conn: An open database connection.
    """
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO _meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    # executescript() commits implicitly; the INSERT above opens a new
    # transaction that must be closed before callers use BEGIN IMMEDIATE.
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the stored schema version, or None for an uninitialized database."""
    try:
        cursor = conn.execute("SELECT value FROM _meta WHERE key = 'schema_version'")
    except sqlite3.OperationalError:
        return None
    row = cursor.fetchone()
    return int(row[0]) if row else None
