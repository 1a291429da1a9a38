"""MediaProbe interface for media metadata extraction."""

from pathlib import Path
from typing import Protocol

from mediasync.introspector.types import ProbeResult


class MediaProbe(Protocol):
    """Protocol for metadata probe implementations."""

    def probe(self, path: Path) -> ProbeResult:
        """Extract stream facts from a media file.

        Raises:
            ProbeError: If the file is missing, unreadable or unparseable.
                A readable file without video returns has_video_stream=False.
        """
        ...
