"""SQLite connections for the media library.

Every unit of work opens its own short-lived connection: the watcher
consumers, the transcode workers and the HTTP handlers each run in
different threads, and sqlite3 connections must not cross threads.
"""

from __future__ import annotations

import logging
import random
import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PRAGMAS = (
    # Comments cascade from files, files cascade from projects
    "PRAGMA foreign_keys = ON",
    # HTTP handlers read while a worker or a sync pass writes
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA busy_timeout = 10000",
)


def ensure_db_directory(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


@contextmanager
def get_connection(
    db_path: Path, timeout: float = 30.0
) -> Iterator[sqlite3.Connection]:
    """Open a library connection, closing it when the block exits.

    Rows come back as sqlite3.Row so query helpers can read columns by name.
    """
    ensure_db_directory(db_path)

    conn = sqlite3.connect(str(db_path), timeout=timeout)
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    conn.row_factory = sqlite3.Row

    try:
        yield conn
    finally:
        conn.close()


def _is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).casefold()
    return "locked" in message or "busy" in message


def execute_with_retry(
    func: Callable[[], T],
    max_retries: int = 5,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    jitter: float = 0.1,
) -> T:
    """Call func, backing off and calling again while the database is locked.

    The delay doubles after each locked attempt up to max_delay, with a
    random jitter fraction so concurrent writers spread out.

    Raises:
        sqlite3.OperationalError: Immediately for errors other than lock
            contention, or the last lock error once max_retries is used up.
    """
    delay = base_delay
    attempt = 0

    while True:
        try:
            result = func()
        except sqlite3.OperationalError as e:
            if not _is_lock_error(e):
                raise
            if attempt >= max_retries:
                logger.warning(
                    "Giving up on locked database after %d attempts: %s",
                    attempt + 1,
                    e,
                )
                raise

            wait = delay * (1 + random.uniform(-jitter, jitter))  # nosec B311
            attempt += 1
            logger.info(
                "Database locked, retry %d/%d in %.2fs: %s",
                attempt,
                max_retries,
                wait,
                e,
            )
            time.sleep(wait)
            delay = min(delay * 2, max_delay)
            continue

        if attempt:
            logger.info("Database write went through after %d retries", attempt)
        return result


def write_transaction(db_path: Path, func: Callable[[sqlite3.Connection], T]) -> T:
    """Run func inside a committed write transaction, retrying on lock errors.

    BEGIN IMMEDIATE takes the write lock up front, so a conditional status
    update and the reads that guard it see the same snapshot. A fresh
    connection is opened per attempt and the transaction is rolled back if
    func raises.
    """

    def attempt() -> T:
        with get_connection(db_path) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                result = func(conn)
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
            return result

    return execute_with_retry(attempt)
