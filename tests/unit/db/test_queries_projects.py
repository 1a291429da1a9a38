"""Tests for project queries."""

from pathlib import Path

from mediasync.db import get_connection, write_transaction
from mediasync.db.queries import (
    get_project,
    insert_project,
    list_projects_with_folder,
    set_media_folder,
)


class TestProjects:
    def test_new_project_has_no_folder(self, db_path: Path, project_id: int) -> None:
        with get_connection(db_path) as conn:
            project = get_project(conn, project_id)

        assert project.name == "Launch Film"
        assert project.media_folder_path is None

    def test_missing_project(self, db_path: Path) -> None:
        with get_connection(db_path) as conn:
            assert get_project(conn, 404) is None

    def test_set_media_folder(self, db_path: Path, project_id: int) -> None:
        assert write_transaction(
            db_path, lambda conn: set_media_folder(conn, project_id, "/srv/media/7")
        )

        with get_connection(db_path) as conn:
            assert get_project(conn, project_id).media_folder_path == "/srv/media/7"

    def test_set_media_folder_unknown_project(self, db_path: Path) -> None:
        assert not write_transaction(
            db_path, lambda conn: set_media_folder(conn, 404, "/srv/media")
        )

    def test_list_projects_with_folder(self, db_path: Path, project_id: int) -> None:
        other = write_transaction(
            db_path, lambda conn: insert_project(conn, "Teaser", "/srv/teaser")
        )
        write_transaction(db_path, lambda conn: insert_project(conn, "Empty", ""))

        with get_connection(db_path) as conn:
            ids = [p.id for p in list_projects_with_folder(conn)]

        assert ids == [other]
