"""HTTP API handlers.

Endpoints:
    GET    /api/projects/{project_id}/files - List a project's media files
    POST   /api/projects/{project_id}/files - Register an uploaded file
    PUT    /api/projects/{project_id}/media-folder - Assign the watched folder
    POST   /api/projects/{project_id}/sync - Run one sync pass now
    GET    /api/files/{file_id} - Get a media file
    GET    /api/files/{file_id}/stream - Stream the playable variant
    POST   /api/files/{file_id}/retry - Re-queue a failed file
    DELETE /api/files/{file_id} - Delete a media file and its outputs
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web
from pydantic import BaseModel, ValidationError

from mediasync.exceptions import (
    FsSyncError,
    MediaFileExistsError,
    MediaFileNotFoundError,
    ProjectNotFoundError,
    RetryNotAllowedError,
)
from mediasync.library import resolve_stream_path, stream_content_type
from mediasync.server.errors import (
    INTERNAL_ERROR,
    INVALID_ID_FORMAT,
    INVALID_JSON,
    NOT_FOUND,
    RESOURCE_CONFLICT,
    RETRY_NOT_ALLOWED,
    SHUTTING_DOWN,
    SYNC_FAILED,
    VALIDATION_FAILED,
    api_error,
)
from mediasync.server.models import MediaFolderRequest, RegisterUploadRequest
from mediasync.services import MediaServices

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def shutdown_check_middleware(handler: Handler) -> Handler:
    """Decorator that returns 503 while the daemon is shutting down."""

    async def wrapper(request: web.Request) -> web.StreamResponse:
        lifecycle = request.app.get("lifecycle")
        if lifecycle and lifecycle.is_shutting_down:
            return api_error(
                "Service is shutting down", code=SHUTTING_DOWN, status=503
            )
        return await handler(request)

    return wrapper


def _services(request: web.Request) -> MediaServices:
    return request.app["services"]


def _parse_id(request: web.Request, key: str) -> int | None:
    """Parse a positive integer path parameter, or None if invalid."""
    try:
        value = int(request.match_info[key])
    except ValueError:
        return None
    return value if value >= 1 else None


def _invalid_id(kind: str) -> web.Response:
    return api_error(f"Invalid {kind} ID format", code=INVALID_ID_FORMAT)


async def _parse_body(
    request: web.Request, model: type[BaseModel]
) -> tuple[Any, web.Response | None]:
    """Validate a JSON body against model. Returns (model, error_response)."""
    try:
        data = await request.json()
    except ValueError:
        return None, api_error("Invalid JSON payload", code=INVALID_JSON)
    try:
        return model.model_validate(data), None
    except ValidationError as e:
        details = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in e.errors()
        ]
        return None, api_error(
            "Invalid request", code=VALIDATION_FAILED, details=details
        )


def _project_not_found(project_id: int) -> web.Response:
    return api_error(f"Project {project_id} not found", code=NOT_FOUND, status=404)


def _file_not_found(file_id: int) -> web.Response:
    return api_error(f"Media file {file_id} not found", code=NOT_FOUND, status=404)


# ----------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------


@shutdown_check_middleware
async def api_project_files_handler(request: web.Request) -> web.Response:
    """Handle GET /api/projects/{project_id}/files."""
    project_id = _parse_id(request, "project_id")
    if project_id is None:
        return _invalid_id("project")

    try:
        records = await asyncio.to_thread(
            _services(request).library.list_files, project_id
        )
    except ProjectNotFoundError:
        return _project_not_found(project_id)

    return web.json_response(
        {"project_id": project_id, "files": [r.to_dict() for r in records]}
    )


@shutdown_check_middleware
async def api_register_upload_handler(request: web.Request) -> web.Response:
    """Handle POST /api/projects/{project_id}/files.

    Registers a file the upload collaborator has already stored. Videos are
    queued for processing.
    """
    project_id = _parse_id(request, "project_id")
    if project_id is None:
        return _invalid_id("project")

    body, error = await _parse_body(request, RegisterUploadRequest)
    if error is not None:
        return error

    try:
        record = await asyncio.to_thread(
            _services(request).library.register_upload,
            project_id,
            body.file_path,
            original_name=body.original_name,
            folder=body.folder,
            mime_type=body.mime_type,
        )
    except ProjectNotFoundError:
        return _project_not_found(project_id)
    except FileNotFoundError:
        return api_error(
            f"Uploaded file does not exist: {body.file_path}",
            code=VALIDATION_FAILED,
        )
    except MediaFileExistsError as e:
        return api_error(
            str(e),
            code=RESOURCE_CONFLICT,
            status=409,
            details={"file_id": e.file_id},
        )

    return web.json_response(record.to_dict(), status=201)


@shutdown_check_middleware
async def api_media_folder_handler(request: web.Request) -> web.Response:
    """Handle PUT /api/projects/{project_id}/media-folder.

    Persists the assignment, runs an initial sync and (re)starts the
    project's watcher. A folder that cannot be listed is still assigned;
    the response is 422 with the sync error.
    """
    project_id = _parse_id(request, "project_id")
    if project_id is None:
        return _invalid_id("project")

    body, error = await _parse_body(request, MediaFolderRequest)
    if error is not None:
        return error

    library = _services(request).library
    try:
        result = await library.assign_media_folder(project_id, body.path)
    except ProjectNotFoundError:
        return _project_not_found(project_id)
    except FsSyncError as e:
        return api_error(str(e), code=SYNC_FAILED, status=422)

    watcher = library.registry.get(project_id) if library.registry else None
    return web.json_response(
        {
            "project_id": project_id,
            "media_folder_path": result.root,
            "sync": result.to_dict(),
            "watcher": watcher.status() if watcher else None,
        }
    )


@shutdown_check_middleware
async def api_project_sync_handler(request: web.Request) -> web.Response:
    """Handle POST /api/projects/{project_id}/sync."""
    project_id = _parse_id(request, "project_id")
    if project_id is None:
        return _invalid_id("project")

    try:
        result = await asyncio.to_thread(
            _services(request).library.sync_project, project_id
        )
    except ProjectNotFoundError:
        return _project_not_found(project_id)
    except FsSyncError as e:
        return api_error(str(e), code=SYNC_FAILED, status=422)

    return web.json_response(result.to_dict())


# ----------------------------------------------------------------------
# Files
# ----------------------------------------------------------------------


@shutdown_check_middleware
async def api_file_detail_handler(request: web.Request) -> web.Response:
    """Handle GET /api/files/{file_id}."""
    file_id = _parse_id(request, "file_id")
    if file_id is None:
        return _invalid_id("file")

    try:
        record = await asyncio.to_thread(_services(request).library.get_file, file_id)
    except MediaFileNotFoundError:
        return _file_not_found(file_id)

    return web.json_response(record.to_dict())


@shutdown_check_middleware
async def api_file_stream_handler(request: web.Request) -> web.StreamResponse:
    """Handle GET /api/files/{file_id}/stream.

    Serves the transcoded output once it exists, otherwise the original.
    Range requests are handled by FileResponse.
    """
    file_id = _parse_id(request, "file_id")
    if file_id is None:
        return _invalid_id("file")

    try:
        record = await asyncio.to_thread(_services(request).library.get_file, file_id)
    except MediaFileNotFoundError:
        return _file_not_found(file_id)

    path = await asyncio.to_thread(resolve_stream_path, record)
    if not path.is_file():
        return api_error(
            f"File for media file {file_id} is missing on disk",
            code=NOT_FOUND,
            status=404,
        )

    return web.FileResponse(
        path, headers={"Content-Type": stream_content_type(record, path)}
    )


@shutdown_check_middleware
async def api_file_retry_handler(request: web.Request) -> web.Response:
    """Handle POST /api/files/{file_id}/retry.

    Query parameters:
        force: "true" to retry past the attempt limit.
    """
    file_id = _parse_id(request, "file_id")
    if file_id is None:
        return _invalid_id("file")
    force = request.query.get("force", "").lower() in ("1", "true", "yes")

    services = _services(request)
    try:
        record = await asyncio.to_thread(services.library.get_file, file_id)
        services.processor.check_retry_allowed(record, force=force)
    except MediaFileNotFoundError:
        return _file_not_found(file_id)
    except RetryNotAllowedError as e:
        return api_error(str(e), code=RETRY_NOT_ALLOWED, status=409)

    if services.queue is None or services.queue.submit(file_id, retry=True) is None:
        return api_error(
            f"Media file {file_id} is already queued",
            code=RESOURCE_CONFLICT,
            status=409,
        )

    logger.info("Retry requested for media file %d (force=%s)", file_id, force)
    return web.json_response({"file_id": file_id, "queued": True}, status=202)


@shutdown_check_middleware
async def api_file_delete_handler(request: web.Request) -> web.Response:
    """Handle DELETE /api/files/{file_id}."""
    file_id = _parse_id(request, "file_id")
    if file_id is None:
        return _invalid_id("file")

    try:
        record = await asyncio.to_thread(
            _services(request).library.delete_media_file, file_id
        )
    except MediaFileNotFoundError:
        return _file_not_found(file_id)
    except OSError as e:
        logger.error("Failed to delete media file %d: %s", file_id, e)
        return api_error(
            f"Could not delete file: {e.strerror or e}",
            code=INTERNAL_ERROR,
            status=500,
        )

    return web.json_response({"deleted": record.id})


def setup_api_routes(app: web.Application) -> None:
    """Register API routes with the application."""
    app.router.add_get("/api/projects/{project_id}/files", api_project_files_handler)
    app.router.add_post(
        "/api/projects/{project_id}/files", api_register_upload_handler
    )
    app.router.add_put(
        "/api/projects/{project_id}/media-folder", api_media_folder_handler
    )
    app.router.add_post("/api/projects/{project_id}/sync", api_project_sync_handler)
    app.router.add_get("/api/files/{file_id}", api_file_detail_handler)
    app.router.add_get("/api/files/{file_id}/stream", api_file_stream_handler)
    app.router.add_post("/api/files/{file_id}/retry", api_file_retry_handler)
    app.router.add_delete("/api/files/{file_id}", api_file_delete_handler)
