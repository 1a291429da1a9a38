"""Tests for write-stability tracking."""

from pathlib import Path

from mediasync.sync import StabilityWindow
from mediasync.sync.stability import snapshot_sizes


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestStabilityWindow:
    def test_stable_after_quiet_window(self) -> None:
        clock = FakeClock()
        window = StabilityWindow(2.0, clock=clock)
        window.observe({"clip.mov": 10})

        clock.now += 1.5
        window.observe({"clip.mov": 10})
        assert not window.is_stable
        assert window.remaining == 0.5

        clock.now += 0.5
        assert window.is_stable
        assert window.remaining == 0.0

    def test_growth_restarts_window(self) -> None:
        clock = FakeClock()
        window = StabilityWindow(2.0, clock=clock)
        window.observe({"clip.mov": 10})

        clock.now += 1.9
        window.observe({"clip.mov": 20})
        clock.now += 1.9

        assert not window.is_stable

    def test_touch_restarts_window(self) -> None:
        clock = FakeClock()
        window = StabilityWindow(2.0, clock=clock)

        clock.now += 1.9
        window.touch()
        clock.now += 1.0

        assert not window.is_stable

    def test_zero_window_is_immediately_stable(self) -> None:
        assert StabilityWindow(0.0).is_stable


def test_snapshot_sizes(tmp_path: Path) -> None:
    (tmp_path / "clip.mov").write_bytes(b"12345")

    assert snapshot_sizes(tmp_path, ["clip.mov", "gone.mov"]) == {
        "clip.mov": 5,
        "gone.mov": None,
    }
