"""Database layer: connections, schema, records and queries."""

from pathlib import Path

from mediasync.db.connection import (
    execute_with_retry,
    get_connection,
    write_transaction,
)
from mediasync.db.schema import SCHEMA_VERSION, create_schema, get_schema_version
from mediasync.db.types import (
    CommentRecord,
    FolderClassification,
    MediaFileRecord,
    ProjectRecord,
    TranscodingStatus,
)


def initialize_database(db_path: Path) -> None:
    """Create the schema in db_path if needed."""
    with get_connection(db_path) as conn:
        create_schema(conn)


__all__ = [
    "SCHEMA_VERSION",
    "CommentRecord",
    "FolderClassification",
    "MediaFileRecord",
    "ProjectRecord",
    "TranscodingStatus",
    "create_schema",
    "execute_with_retry",
    "get_connection",
    "get_schema_version",
    "initialize_database",
    "write_transaction",
]
