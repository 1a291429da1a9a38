"""Tests for folder reconciliation."""

import threading
from pathlib import Path

import pytest

from mediasync.db import get_connection, write_transaction
from mediasync.db.queries import (
    get_comments_for_file,
    get_files_for_project,
    get_project,
    insert_comment,
)
from mediasync.exceptions import FsSyncError
from mediasync.sync import FolderReconciler, is_ignored_name


@pytest.fixture
def reconciler(db_path: Path) -> FolderReconciler:
    return FolderReconciler(db_path)


def rows(db_path: Path, project_id: int):
    with get_connection(db_path) as conn:
        return {r.filename: r for r in get_files_for_project(conn, project_id)}


def write(path: Path, size: int) -> Path:
    path.write_bytes(b"x" * size)
    return path


class TestIsIgnoredName:
    @pytest.mark.parametrize(
        "name,ignored",
        [
            (".DS_Store", True),
            (".mediasync_tmp_clip-transcoded.mp4", True),
            ("clip-transcoded.mp4", True),
            ("clip.mov", False),
            ("transcoded-notes.pdf", False),
        ],
    )
    def test_names(self, name: str, ignored: bool) -> None:
        assert is_ignored_name(name) is ignored


class TestSyncFolder:
    def test_new_files_are_added(
        self, reconciler, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        write(media_root / "clip.mov", 100)
        write(media_root / "script.pdf", 10)

        result = reconciler.sync_folder(project_id, media_root)

        assert result.added == ["clip.mov", "script.pdf"]
        assert result.total_files == 2
        found = rows(db_path, project_id)
        assert found["clip.mov"].mime_type == "video/quicktime"
        assert found["clip.mov"].file_size == 100
        assert found["clip.mov"].file_path == str(media_root / "clip.mov")
        assert result.added_video_ids == [found["clip.mov"].id]

    def test_second_pass_changes_nothing(
        self, reconciler, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        write(media_root / "clip.mov", 100)
        reconciler.sync_folder(project_id, media_root)
        with get_connection(db_path) as conn:
            updated_at = get_project(conn, project_id).updated_at

        result = reconciler.sync_folder(project_id, media_root)

        assert not result.changed
        assert result.unchanged == ["clip.mov"]
        assert result.added_video_ids == []
        with get_connection(db_path) as conn:
            assert get_project(conn, project_id).updated_at == updated_at

    def test_size_change_updates_row_only(
        self, reconciler, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        clip = write(media_root / "clip.mov", 100)
        reconciler.sync_folder(project_id, media_root)
        before = rows(db_path, project_id)["clip.mov"]
        write(clip, 250)

        result = reconciler.sync_folder(project_id, media_root)

        after = rows(db_path, project_id)["clip.mov"]
        assert result.updated == ["clip.mov"]
        assert result.added_video_ids == []
        assert after.id == before.id
        assert after.file_size == 250
        assert after.transcoding_status is before.transcoding_status

    def test_deleted_file_removes_row_output_and_comments(
        self, reconciler, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        clip = write(media_root / "clip.mov", 100)
        reconciler.sync_folder(project_id, media_root)
        file_id = rows(db_path, project_id)["clip.mov"].id
        output = write(media_root / "clip-transcoded.mp4", 40)
        write_transaction(
            db_path,
            lambda conn: conn.execute(
                "UPDATE files SET transcoding_status = 'complete', "
                "transcoded_file_path = ? WHERE id = ?",
                (str(output), file_id),
            ),
        )
        write_transaction(
            db_path, lambda conn: insert_comment(conn, file_id, "Dana", "Too dark")
        )
        clip.unlink()

        result = reconciler.sync_folder(project_id, media_root)

        assert result.removed == ["clip.mov"]
        assert rows(db_path, project_id) == {}
        assert not output.exists()
        with get_connection(db_path) as conn:
            assert get_comments_for_file(conn, file_id) == []

    def test_ignored_entries_and_subdirectories(
        self, reconciler, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        write(media_root / ".hidden.mov", 5)
        write(media_root / "clip-transcoded.mp4", 5)
        (media_root / "archive").mkdir()
        write(media_root / "archive" / "old.mov", 5)

        result = reconciler.sync_folder(project_id, media_root)

        assert result.total_files == 0
        assert rows(db_path, project_id) == {}

    def test_rows_outside_root_are_untouched(
        self,
        reconciler,
        db_path: Path,
        project_id: int,
        media_root: Path,
        add_media_file,
        tmp_path: Path,
    ) -> None:
        uploads = tmp_path / "uploads"
        uploads.mkdir()
        upload_id = add_media_file(uploads / "upload.mov")

        result = reconciler.sync_folder(project_id, media_root)

        assert result.removed == []
        assert rows(db_path, project_id)["upload.mov"].id == upload_id

    def test_missing_root_raises_and_writes_nothing(
        self,
        reconciler,
        db_path: Path,
        project_id: int,
        media_root: Path,
        add_media_file,
    ) -> None:
        add_media_file(media_root / "clip.mov")

        with pytest.raises(FsSyncError, match="folder does not exist"):
            reconciler.sync_folder(project_id, media_root / "gone")

        assert "clip.mov" in rows(db_path, project_id)

    def test_root_that_is_a_file(
        self, reconciler, project_id: int, media_root: Path
    ) -> None:
        target = write(media_root / "clip.mov", 1)

        with pytest.raises(FsSyncError, match="not a directory"):
            reconciler.sync_folder(project_id, target)

    def test_concurrent_passes_insert_once(
        self, reconciler, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        for i in range(10):
            write(media_root / f"clip{i}.mov", 10 + i)
        results = []
        barrier = threading.Barrier(4)

        def run() -> None:
            barrier.wait()
            results.append(reconciler.sync_folder(project_id, media_root))

        threads = [threading.Thread(target=run) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(rows(db_path, project_id)) == 10
        assert sum(len(r.added) for r in results) == 10

    def test_separate_reconcilers_do_not_duplicate(
        self, db_path: Path, project_id: int, media_root: Path
    ) -> None:
        write(media_root / "clip.mov", 10)

        first = FolderReconciler(db_path).sync_folder(project_id, media_root)
        second = FolderReconciler(db_path).sync_folder(project_id, media_root)

        assert first.added == ["clip.mov"]
        assert second.added == []
        assert len(rows(db_path, project_id)) == 1
