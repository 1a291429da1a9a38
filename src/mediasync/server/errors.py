"""Standardized API error responses.

All error responses carry ``error`` (human-readable) and ``code``
(machine-readable), plus optional ``details``.
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

INVALID_REQUEST = "INVALID_REQUEST"
INVALID_JSON = "INVALID_JSON"
INVALID_ID_FORMAT = "INVALID_ID_FORMAT"
VALIDATION_FAILED = "VALIDATION_FAILED"
NOT_FOUND = "NOT_FOUND"
RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
RETRY_NOT_ALLOWED = "RETRY_NOT_ALLOWED"
SYNC_FAILED = "SYNC_FAILED"
SHUTTING_DOWN = "SHUTTING_DOWN"
INTERNAL_ERROR = "INTERNAL_ERROR"


def api_error(
    message: str,
    *,
    code: str,
    status: int = 400,
    details: Any = None,
) -> web.Response:
    """Create a standardized JSON error response."""
    body: dict[str, Any] = {"error": message, "code": code}
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=status)
