"""File processing workflow, worker pool and scheduled retry."""

from mediasync.jobs.processor import MediaProcessor
from mediasync.jobs.queue import TranscodeQueue
from mediasync.jobs.retry_task import RetryTask

__all__ = ["MediaProcessor", "RetryTask", "TranscodeQueue"]
