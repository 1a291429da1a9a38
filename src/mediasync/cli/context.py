"""Shared state for CLI commands.

The main group stores the merged config and database path in ctx.obj;
commands build only the pipeline pieces they need from it.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import click

from mediasync.cli.exit_codes import ExitCode
from mediasync.cli.output import error_exit
from mediasync.config import MediaSyncConfig
from mediasync.db import initialize_database
from mediasync.exceptions import ToolNotFoundError
from mediasync.jobs import MediaProcessor
from mediasync.library import MediaLibrary
from mediasync.services import build_processor
from mediasync.sync import FolderReconciler


def get_cli_config(ctx: click.Context) -> MediaSyncConfig:
    return ctx.obj["config"]


def get_db_path(ctx: click.Context, json_output: bool = False) -> Path:
    """Return the database path, creating the schema if needed."""
    db_path: Path = ctx.obj["db_path"]
    try:
        initialize_database(db_path)
    except (sqlite3.Error, OSError) as e:
        error_exit(
            f"Database not accessible: {db_path}: {e}",
            ExitCode.DATABASE_ERROR,
            json_output,
        )
    return db_path


def open_library(ctx: click.Context, json_output: bool = False) -> MediaLibrary:
    """Library without a worker pool; nothing is queued in the background."""
    db_path = get_db_path(ctx, json_output)
    return MediaLibrary(db_path, FolderReconciler(db_path))


def open_processor(ctx: click.Context, json_output: bool = False) -> MediaProcessor:
    db_path = get_db_path(ctx, json_output)
    try:
        return build_processor(get_cli_config(ctx), db_path)
    except ToolNotFoundError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_FOUND, json_output)
