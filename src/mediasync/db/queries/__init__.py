"""Query functions, split per table."""

from .comments import get_comments_for_file, insert_comment
from .files import (
    INTERRUPTED_ERROR,
    claim_for_processing,
    count_by_status,
    delete_media_file_row,
    get_file_by_path,
    get_files_for_project,
    get_media_file,
    insert_discovered_file,
    insert_media_file,
    list_pending_videos,
    list_retryable_failed,
    mark_complete,
    mark_failed,
    recover_interrupted,
    update_file_size,
)
from .projects import (
    get_project,
    insert_project,
    list_projects_with_folder,
    set_media_folder,
    touch_project,
)

__all__ = [
    "INTERRUPTED_ERROR",
    "claim_for_processing",
    "count_by_status",
    "delete_media_file_row",
    "get_comments_for_file",
    "get_file_by_path",
    "get_files_for_project",
    "get_media_file",
    "get_project",
    "insert_comment",
    "insert_discovered_file",
    "insert_media_file",
    "insert_project",
    "list_pending_videos",
    "list_projects_with_folder",
    "list_retryable_failed",
    "mark_complete",
    "mark_failed",
    "recover_interrupted",
    "set_media_folder",
    "touch_project",
    "update_file_size",
]
