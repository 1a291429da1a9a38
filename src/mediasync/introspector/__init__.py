"""Media metadata probing."""

from mediasync.introspector.ffprobe import FFprobeProbe
from mediasync.introspector.interface import MediaProbe
from mediasync.introspector.parsers import parse_probe_output
from mediasync.introspector.types import ProbeResult

__all__ = ["FFprobeProbe", "MediaProbe", "ProbeResult", "parse_probe_output"]
