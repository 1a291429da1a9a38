"""CLI output helpers for JSON and human-readable output."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from mediasync.cli.exit_codes import ExitCode

JSON_OPTION_HELP = "Output as JSON."


def json_option(func):
    """Add a --json flag, passed to the command as json_output."""
    return click.option(
        "--json", "json_output", is_flag=True, default=False, help=JSON_OPTION_HELP
    )(func)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Print an error and exit with code.

    JSON errors carry the ExitCode name so scripts can branch on it.
    """
    code_name = code.name if isinstance(code, ExitCode) else "UNKNOWN_ERROR"

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {"code": code_name, "message": message},
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(int(code))
