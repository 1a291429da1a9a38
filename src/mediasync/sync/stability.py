"""Write-stability tracking for watched folders.

A burst of filesystem events is acted on only once the affected files have
gone a full window without a size change, so a file still being copied in
is never reconciled (and therefore never transcoded) half-written.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from pathlib import Path

# Size of a path, or None if it is gone
SizeSnapshot = dict[str, int | None]


def snapshot_sizes(root: Path, names: Iterable[str]) -> SizeSnapshot:
    """Stat each name under root."""
    sizes: SizeSnapshot = {}
    for name in names:
        try:
            sizes[name] = (root / name).stat().st_size
        except OSError:
            sizes[name] = None
    return sizes


class StabilityWindow:
    """Tracks when a set of files last changed.

    Call observe() with fresh snapshots and touch() when new events arrive;
    is_stable becomes true once window_seconds pass with neither.
    """

    def __init__(
        self,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_change = clock()
        self._sizes: SizeSnapshot = {}

    def touch(self) -> None:
        self._last_change = self._clock()

    def observe(self, sizes: SizeSnapshot) -> None:
        if sizes != self._sizes:
            self._sizes = dict(sizes)
            self._last_change = self._clock()

    @property
    def remaining(self) -> float:
        """Seconds until the window elapses, 0 once stable."""
        return max(0.0, self.window_seconds - (self._clock() - self._last_change))

    @property
    def is_stable(self) -> bool:
        return self.remaining <= 0.0
