"""Tests for the transcode worker pool."""

import threading
from unittest.mock import MagicMock

from mediasync.jobs import TranscodeQueue


def blocking_processor(release: threading.Event, started: threading.Event):
    processor = MagicMock()

    def process_file(file_id, retry=False):
        started.set()
        release.wait(5)
        return f"record-{file_id}"

    processor.process_file.side_effect = process_file
    return processor


class TestTranscodeQueue:
    def test_submit_runs_processor(self) -> None:
        processor = MagicMock()
        processor.process_file.return_value = "done"
        queue = TranscodeQueue(processor, max_workers=1)

        future = queue.submit(5, retry=True)

        assert future.result(timeout=5) == "done"
        processor.process_file.assert_called_once_with(5, retry=True)
        queue.shutdown()

    def test_duplicate_submission_is_ignored(self) -> None:
        release, started = threading.Event(), threading.Event()
        queue = TranscodeQueue(blocking_processor(release, started), max_workers=1)

        first = queue.submit(5)
        assert started.wait(5)
        assert queue.submit(5) is None
        assert queue.in_flight() == {5}

        release.set()
        assert first.result(timeout=5) == "record-5"
        queue.shutdown()
        assert queue.in_flight() == set()

    def test_id_can_be_resubmitted_after_completion(self) -> None:
        processor = MagicMock()
        queue = TranscodeQueue(processor, max_workers=1)

        queue.submit(5).result(timeout=5)

        assert queue.submit(5) is not None
        queue.shutdown()
        assert processor.process_file.call_count == 2

    def test_worker_errors_are_contained(self) -> None:
        processor = MagicMock()
        processor.process_file.side_effect = RuntimeError("boom")
        queue = TranscodeQueue(processor, max_workers=1)

        assert queue.submit(5).result(timeout=5) is None
        queue.shutdown()

    def test_closed_queue_refuses_work(self) -> None:
        queue = TranscodeQueue(MagicMock(), max_workers=1)
        queue.shutdown()

        assert queue.submit(5) is None

    def test_pool_size_caps_concurrency(self) -> None:
        lock = threading.Lock()
        running = 0
        peak = 0
        release = threading.Event()

        def process_file(file_id, retry=False):
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            release.wait(0.2)
            with lock:
                running -= 1

        processor = MagicMock()
        processor.process_file.side_effect = process_file
        queue = TranscodeQueue(processor, max_workers=2)

        futures = [queue.submit(file_id) for file_id in range(1, 7)]
        for future in futures:
            future.result(timeout=10)
        queue.shutdown()

        assert peak <= 2
        assert processor.process_file.call_count == 6
