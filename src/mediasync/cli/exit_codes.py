"""Process exit codes for the mediasync CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_ARGUMENTS = 2
    CONFIG_ERROR = 3
    TOOL_NOT_FOUND = 4
    NOT_FOUND = 5
    SYNC_FAILED = 6
    PROCESSING_FAILED = 7
    RETRY_NOT_ALLOWED = 8
    PROBE_FAILED = 9
    DATABASE_ERROR = 10
