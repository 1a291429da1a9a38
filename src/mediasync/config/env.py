"""Typed access to MEDIASYNC_* environment variables.

The loader reads the environment only through EnvReader, so tests pass a
plain dict instead of patching os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Read environment variables with type conversion.

    Unset variables return the default. Values that do not parse are logged
    and also return the default, so a typo never stops the daemon starting.

    Example:
        reader = EnvReader(env={"MEDIASYNC_SERVER_PORT": "9000"})
        port = reader.get_int("MEDIASYNC_SERVER_PORT", 8420)  # 9000
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._env.get(var, default)

    def _number(
        self, var: str, convert: Callable[[str], N], kind: str, default: N | None
    ) -> N | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Invalid %s value for %s: %s", kind, var, raw)
            return default

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._number(var, int, "integer", default)

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._number(var, float, "float", default)

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Any set value other than true/1/yes/on (any case) is false."""
        raw = self._env.get(var)
        if raw is None:
            return default
        return raw.strip().lower() in _TRUE_VALUES

    def get_path(
        self, var: str, must_exist: bool = False, default: Path | None = None
    ) -> Path | None:
        """Get a path with ~ expanded.

        With must_exist, a path that is not on disk is ignored with a warning.
        """
        raw = self._env.get(var)
        if raw is None:
            return default

        path = Path(raw).expanduser()
        if must_exist and not path.exists():
            logger.warning("%s points to a missing path, ignoring: %s", var, raw)
            return default
        return path
