"""Tests for write transactions."""

import sqlite3
from pathlib import Path

import pytest

from mediasync.db import get_connection, write_transaction
from mediasync.db.connection import execute_with_retry
from mediasync.db.queries import get_project, insert_project


def test_write_transaction_commits(db_path: Path) -> None:
    project_id = write_transaction(db_path, lambda conn: insert_project(conn, "Ad"))

    with get_connection(db_path) as conn:
        assert get_project(conn, project_id).name == "Ad"


def test_write_transaction_rolls_back_on_error(db_path: Path) -> None:
    def failing(conn: sqlite3.Connection) -> None:
        insert_project(conn, "Never Saved")
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        write_transaction(db_path, failing)

    with get_connection(db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0]
    assert count == 0


def test_execute_with_retry_retries_locked_errors() -> None:
    calls = []

    def flaky() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise sqlite3.OperationalError("database is locked")
        return "done"

    assert execute_with_retry(flaky, base_delay=0.001) == "done"
    assert len(calls) == 3


def test_execute_with_retry_does_not_retry_other_errors() -> None:
    calls = []

    def broken() -> None:
        calls.append(1)
        raise sqlite3.OperationalError("no such table: files")

    with pytest.raises(sqlite3.OperationalError):
        execute_with_retry(broken, base_delay=0.001)
    assert len(calls) == 1
