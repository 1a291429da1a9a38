"""CLI module for mediasync."""

import logging
import os
from pathlib import Path

import click

from mediasync.cli.exit_codes import ExitCode
from mediasync.cli.output import error_exit
from mediasync.config import (
    ConfigFileError,
    MediaSyncConfig,
    build_logging_config,
    get_config,
    get_data_dir,
)
from mediasync.logging import configure_logging
from mediasync.services import resolve_db_path

logger = logging.getLogger(__name__)


def _configure_logging(
    config: MediaSyncConfig,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from the config file with CLI overrides applied."""
    configure_logging(
        build_logging_config(
            config.logging,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    )


def _log_startup_settings(config: MediaSyncConfig, db_path: Path) -> None:
    data_dir = get_data_dir()
    data_dir_source = "env" if os.environ.get("MEDIASYNC_DATA_DIR") else "default"
    home = str(Path.home())
    logger.debug(
        "mediasync starting: data_dir=%s (%s), db=%s, log_level=%s",
        str(data_dir).replace(home, "~"),
        data_dir_source,
        str(db_path).replace(home, "~"),
        config.logging.level,
    )


@click.group()
@click.version_option(package_name="studio-media-sync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: ~/.mediasync/config.toml).",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the library database (default: ~/.mediasync/library.db).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    db_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Studio media sync - watch project folders and transcode for the web."""
    ctx.ensure_object(dict)

    # Preserve a config passed in by tests
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path=config_path, database_path=db_path, strict=True
            )
        except (ConfigFileError, ValueError) as e:
            error_exit(f"Invalid configuration: {e}", ExitCode.CONFIG_ERROR)

    config: MediaSyncConfig = ctx.obj["config"]
    ctx.obj.setdefault("db_path", db_path or resolve_db_path(config))

    try:
        _configure_logging(config, log_level, log_file, log_json)
    except ValueError as e:
        error_exit(f"Invalid logging configuration: {e}", ExitCode.CONFIG_ERROR)
    _log_startup_settings(config, ctx.obj["db_path"])


# Defer import to avoid circular dependency
def _register_commands():
    from mediasync.cli.process import probe_command, process_command, retry_command
    from mediasync.cli.projects import (
        assign_folder_command,
        create_project_command,
        status_command,
        sync_command,
    )
    from mediasync.cli.serve import serve_command

    main.add_command(create_project_command)
    main.add_command(assign_folder_command)
    main.add_command(sync_command)
    main.add_command(status_command)
    main.add_command(process_command)
    main.add_command(retry_command)
    main.add_command(probe_command)
    main.add_command(serve_command)


_register_commands()
