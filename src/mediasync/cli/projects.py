"""Project commands: create, assign folder, sync and status."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

import click

from mediasync.cli.context import get_db_path, open_library, open_processor
from mediasync.cli.exit_codes import ExitCode
from mediasync.cli.output import echo_json, error_exit, json_option
from mediasync.core.formatting import (
    format_duration,
    format_file_size,
    truncate_filename,
)
from mediasync.db import MediaFileRecord, TranscodingStatus, write_transaction
from mediasync.db.queries import insert_project
from mediasync.exceptions import FsSyncError, ProjectNotFoundError
from mediasync.sync import SyncResult

logger = logging.getLogger(__name__)


def _echo_sync_result(result: SyncResult) -> None:
    click.echo(f"Synced {result.root}")
    click.echo(
        f"  {len(result.added)} added, {len(result.updated)} updated, "
        f"{len(result.removed)} removed, {len(result.unchanged)} unchanged "
        f"({result.total_files} files)"
    )
    for label, names in (
        ("+", result.added),
        ("~", result.updated),
        ("-", result.removed),
    ):
        for name in names:
            click.echo(f"  {label} {name}")


@click.command("create-project")
@click.argument("name")
@json_option
@click.pass_context
def create_project_command(ctx: click.Context, name: str, json_output: bool) -> None:
    """Create a project named NAME.

    Projects are normally created by the studio application; this command
    exists for setup and testing.
    """
    db_path = get_db_path(ctx, json_output)
    try:
        project_id = write_transaction(
            db_path, lambda conn: insert_project(conn, name)
        )
    except sqlite3.IntegrityError:
        error_exit(
            f"A project named {name!r} already exists",
            ExitCode.INVALID_ARGUMENTS,
            json_output,
        )

    if json_output:
        echo_json({"project_id": project_id, "name": name})
    else:
        click.echo(f"Created project {project_id}: {name}")


@click.command("assign-folder")
@click.argument("project_id", type=click.IntRange(min=1))
@click.argument("path", type=click.Path(path_type=Path))
@json_option
@click.pass_context
def assign_folder_command(
    ctx: click.Context, project_id: int, path: Path, json_output: bool
) -> None:
    """Assign PATH as the watched media folder of PROJECT_ID and sync it.

    A running daemon picks up the new folder on its next restart.
    """
    library = open_library(ctx, json_output)
    try:
        result = asyncio.run(library.assign_media_folder(project_id, path))
    except ProjectNotFoundError as e:
        error_exit(str(e), ExitCode.NOT_FOUND, json_output)
    except FsSyncError as e:
        error_exit(
            f"Folder assigned but not synced: {e}", ExitCode.SYNC_FAILED, json_output
        )

    if json_output:
        echo_json(result.to_dict())
    else:
        _echo_sync_result(result)


@click.command("sync")
@click.argument("project_id", type=click.IntRange(min=1))
@click.argument("root", required=False, type=click.Path(path_type=Path))
@click.option(
    "--process",
    "process_added",
    is_flag=True,
    default=False,
    help="Process the videos this pass added before exiting.",
)
@json_option
@click.pass_context
def sync_command(
    ctx: click.Context,
    project_id: int,
    root: Path | None,
    process_added: bool,
    json_output: bool,
) -> None:
    """Run one sync pass for PROJECT_ID.

    ROOT defaults to the project's assigned media folder. Added videos stay
    pending unless --process is given or a daemon picks them up.
    """
    library = open_library(ctx, json_output)
    processor = open_processor(ctx, json_output) if process_added else None

    try:
        result = library.sync_project(project_id, root)
    except ProjectNotFoundError as e:
        error_exit(str(e), ExitCode.NOT_FOUND, json_output)
    except FsSyncError as e:
        error_exit(str(e), ExitCode.SYNC_FAILED, json_output)

    processed: list[MediaFileRecord] = []
    if processor is not None:
        for file_id in result.added_video_ids:
            processed.append(processor.process_file(file_id))

    if json_output:
        data = result.to_dict()
        if processor is not None:
            data["processed"] = [record.to_dict() for record in processed]
        echo_json(data)
        return

    _echo_sync_result(result)
    for record in processed:
        line = f"  {record.original_name}: {record.transcoding_status.value}"
        if record.transcoding_error:
            line += f" ({record.transcoding_error.splitlines()[0]})"
        click.echo(line)


_STATUS_COLORS = {
    TranscodingStatus.PENDING: "yellow",
    TranscodingStatus.PROCESSING: "cyan",
    TranscodingStatus.COMPLETE: "green",
    TranscodingStatus.FAILED: "red",
}


@click.command("status")
@click.argument("project_id", type=click.IntRange(min=1))
@json_option
@click.pass_context
def status_command(ctx: click.Context, project_id: int, json_output: bool) -> None:
    """Show the media files of PROJECT_ID and their processing state."""
    library = open_library(ctx, json_output)
    try:
        records = library.list_files(project_id)
    except ProjectNotFoundError as e:
        error_exit(str(e), ExitCode.NOT_FOUND, json_output)

    if json_output:
        echo_json(
            {"project_id": project_id, "files": [r.to_dict() for r in records]}
        )
        return

    if not records:
        click.echo(f"Project {project_id} has no media files.")
        return

    click.echo(
        f"{'ID':>6}  {'NAME':<40}  {'STATUS':<10}  {'TRIES':>5}  "
        f"{'SIZE':>9}  {'DURATION':>8}  ERROR"
    )
    for record in records:
        status = record.transcoding_status
        error = (
            record.transcoding_error.splitlines()[0]
            if record.transcoding_error
            else ""
        )
        click.echo(
            f"{record.id:>6}  {truncate_filename(record.original_name):<40}  "
            + click.style(f"{status.value:<10}", fg=_STATUS_COLORS[status])
            + f"  {record.transcoding_attempts:>5}  "
            f"{format_file_size(record.file_size):>9}  "
            f"{format_duration(record.duration):>8}  {error}"
        )
