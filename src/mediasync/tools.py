"""Location of the external ffmpeg and ffprobe executables."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from mediasync.exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)


def find_tool(name: str, configured_path: Path | None = None) -> Path:
    """Find a tool executable.

    A configured path wins when it points to a file; otherwise PATH is
    searched.

    Args:
        name: Tool name ("ffmpeg" or "ffprobe").
        configured_path: Optional configured path override.

    Returns:
        Path to the executable.

    Raises:
        ToolNotFoundError: If the tool cannot be located.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    raise ToolNotFoundError(
        f"{name} not found. Install it or set its path in the [tools] config "
        f"section or MEDIASYNC_{name.upper()}_PATH."
    )
