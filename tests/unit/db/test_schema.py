"""Tests for schema creation and constraints."""

import sqlite3
from pathlib import Path

import pytest

from mediasync.db import SCHEMA_VERSION, get_connection, get_schema_version
from mediasync.db.schema import create_schema


def test_schema_version_recorded(db_path: Path) -> None:
    with get_connection(db_path) as conn:
        assert get_schema_version(conn) == SCHEMA_VERSION


def test_create_schema_is_idempotent(db_path: Path) -> None:
    with get_connection(db_path) as conn:
        create_schema(conn)
        create_schema(conn)
        assert get_schema_version(conn) == SCHEMA_VERSION


def test_connection_pragmas(db_path: Path) -> None:
    with get_connection(db_path) as conn:
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"


class TestFileConstraints:
    def insert(self, conn: sqlite3.Connection, project_id: int, **overrides) -> None:
        values = {
            "project_id": project_id,
            "filename": "clip.mov",
            "original_name": "clip.mov",
            "file_path": "/media/clip.mov",
            "file_size": 10,
            "mime_type": "video/quicktime",
            "transcoding_status": "pending",
            "transcoding_attempts": 0,
            "folder": None,
            "uploaded_at": "2026-01-01T00:00:00+00:00",
            "updated_at": "2026-01-01T00:00:00+00:00",
        }
        values.update(overrides)
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        conn.execute(
            f"INSERT INTO files ({columns}) VALUES ({placeholders})",  # nosec B608
            tuple(values.values()),
        )

    def test_rejects_unknown_status(self, db_path: Path, project_id: int) -> None:
        with get_connection(db_path) as conn:
            with pytest.raises(sqlite3.IntegrityError):
                self.insert(conn, project_id, transcoding_status="queued")

    def test_rejects_negative_attempts(self, db_path: Path, project_id: int) -> None:
        with get_connection(db_path) as conn:
            with pytest.raises(sqlite3.IntegrityError):
                self.insert(conn, project_id, transcoding_attempts=-1)

    def test_rejects_unknown_folder(self, db_path: Path, project_id: int) -> None:
        with get_connection(db_path) as conn:
            with pytest.raises(sqlite3.IntegrityError):
                self.insert(conn, project_id, folder="archive")

    def test_path_unique_per_project(self, db_path: Path, project_id: int) -> None:
        with get_connection(db_path) as conn:
            self.insert(conn, project_id)
            with pytest.raises(sqlite3.IntegrityError):
                self.insert(conn, project_id)

    def test_requires_existing_project(self, db_path: Path) -> None:
        with get_connection(db_path) as conn:
            with pytest.raises(sqlite3.IntegrityError):
                self.insert(conn, 999)
