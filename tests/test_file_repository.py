"""Integration tests for the metadata index repository."""

from datetime import datetime, timedelta, timezone

import pytest

from common.constants import DIRECTORY_BUCKET_ID
from gateway.database import get_db_connection
from gateway.exceptions import ConflictError
from gateway.repositories.file_repository import FileRepository, descendant_range

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def add_file(path, bucket_id="A", size=1, object_key=None):
    return FileRepository.upsert(path, bucket_id, False, size, NOW, object_key=object_key)


def paths(records):
    return [record.path for record in records]


class TestDescendantRange:
    def test_nested_path(self):
        assert descendant_range("/a/b") == ("/a/b/", "/a/b0")

    def test_root_is_taken_literally(self):
        assert descendant_range("/") == ("//", "/0")


class TestLookupAndUpsert:
    def test_lookup_missing(self, test_db):
        assert FileRepository.lookup("/nope") is None

    def test_upsert_then_lookup(self, test_db):
        add_file("/a/b.txt", size=5)

        record = FileRepository.lookup("/a/b.txt")
        assert record.path == "/a/b.txt"
        assert record.bucket_id == "A"
        assert record.is_dir is False
        assert record.size == 5
        assert record.updated_at == NOW
        assert record.object_key == "/a/b.txt"

    def test_upsert_replaces_existing_record(self, test_db):
        add_file("/f.txt", bucket_id="A", size=1)
        FileRepository.upsert("/f.txt", "B", False, 9, NOW + timedelta(minutes=1))

        record = FileRepository.lookup("/f.txt")
        assert record.bucket_id == "B"
        assert record.size == 9
        assert record.updated_at == NOW + timedelta(minutes=1)

        with get_db_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM files WHERE path = ?", ("/f.txt",)).fetchone()[0]
        assert count == 1

    def test_upsert_with_shared_connection(self, test_db):
        with get_db_connection() as conn:
            FileRepository.upsert("/tx.txt", "A", False, 2, NOW, conn=conn)
            assert FileRepository.lookup("/tx.txt", conn=conn) is not None
            conn.commit()

        assert FileRepository.lookup("/tx.txt").size == 2

    def test_upsert_without_connection_commits(self, test_db):
        record = FileRepository.upsert("/own.txt", "A", False, 3, NOW)

        assert record.object_key == "/own.txt"
        with get_db_connection() as conn:
            row = conn.execute("SELECT size FROM files WHERE path = ?", ("/own.txt",)).fetchone()
        assert row["size"] == 3

    def test_upsert_with_shared_connection_leaves_commit_to_caller(self, test_db):
        with get_db_connection() as conn:
            FileRepository.upsert("/pending.txt", "A", False, 1, NOW, conn=conn)
            conn.rollback()

        assert FileRepository.lookup("/pending.txt") is None


class TestListChildren:
    def test_self_and_direct_children_only(self, test_db):
        FileRepository.insert_directory("/a", NOW)
        add_file("/a/one.txt")
        FileRepository.insert_directory("/a/sub", NOW)
        add_file("/a/sub/deep.txt")
        add_file("/ab.txt")

        assert paths(FileRepository.list_children("/a")) == ["/a", "/a/one.txt", "/a/sub"]

    def test_children_without_own_record(self, test_db):
        add_file("/a/b.txt")

        assert paths(FileRepository.list_children("/a")) == ["/a/b.txt"]

    def test_root_lists_top_level(self, test_db):
        add_file("/top.txt")
        FileRepository.insert_directory("/dir", NOW)
        add_file("/dir/nested.txt")

        assert paths(FileRepository.list_children("/")) == ["/dir", "/top.txt"]

    def test_wildcards_in_path_are_literal(self, test_db):
        add_file("/a_b/x.txt")
        add_file("/axb/y.txt")
        add_file("/50%/z.txt")
        add_file("/50x/w.txt")

        assert paths(FileRepository.list_children("/a_b")) == ["/a_b/x.txt"]
        assert paths(FileRepository.list_children("/50%")) == ["/50%/z.txt"]

    def test_listing_is_case_sensitive(self, test_db):
        add_file("/docs/a.txt")
        add_file("/Docs/b.txt")

        assert paths(FileRepository.list_children("/docs")) == ["/docs/a.txt"]

    def test_missing_path(self, test_db):
        assert FileRepository.list_children("/ghost") == []


class TestInsertDirectory:
    def test_creates_directory_record(self, test_db):
        record = FileRepository.insert_directory("/photos", NOW)

        assert record.is_dir is True
        stored = FileRepository.lookup("/photos")
        assert stored.is_dir is True
        assert stored.bucket_id == DIRECTORY_BUCKET_ID
        assert stored.size == 0

    def test_second_insert_conflicts(self, test_db):
        FileRepository.insert_directory("/photos", NOW)

        with pytest.raises(ConflictError):
            FileRepository.insert_directory("/photos", NOW)

        with get_db_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM files WHERE path = ?", ("/photos",)).fetchone()[0]
        assert count == 1

    def test_conflicts_with_existing_file(self, test_db):
        add_file("/taken")

        with pytest.raises(ConflictError):
            FileRepository.insert_directory("/taken", NOW)

        assert FileRepository.lookup("/taken").is_dir is False


class TestDeletePathAndDescendants:
    def test_removes_path_and_all_descendants(self, test_db):
        FileRepository.insert_directory("/a", NOW)
        add_file("/a/b.txt")
        add_file("/a/sub/c.txt")
        add_file("/ab.txt")

        removed = FileRepository.delete_path_and_descendants("/a")

        assert removed == 3
        assert FileRepository.lookup("/a") is None
        assert FileRepository.lookup("/a/b.txt") is None
        assert FileRepository.lookup("/a/sub/c.txt") is None
        assert FileRepository.lookup("/ab.txt") is not None

    def test_root_delete_leaves_top_level_records(self, test_db):
        add_file("/keep.txt")

        FileRepository.delete_path_and_descendants("/")

        assert FileRepository.lookup("/keep.txt") is not None

    def test_missing_path_removes_nothing(self, test_db):
        add_file("/keep.txt")

        assert FileRepository.delete_path_and_descendants("/ghost") == 0
        assert FileRepository.lookup("/keep.txt") is not None

    def test_list_subtree_matches_delete_scope(self, test_db):
        FileRepository.insert_directory("/a", NOW)
        add_file("/a/b.txt")
        add_file("/a/sub/c.txt")
        add_file("/ab.txt")

        assert paths(FileRepository.list_subtree("/a")) == ["/a", "/a/b.txt", "/a/sub/c.txt"]


class TestRenamePath:
    def test_rename_moves_only_the_record_path(self, test_db):
        add_file("/a/b.txt", bucket_id="B", size=5)

        assert FileRepository.rename_path("/a/b.txt", "/a/c.txt") is True

        assert FileRepository.lookup("/a/b.txt") is None
        moved = FileRepository.lookup("/a/c.txt")
        assert moved.bucket_id == "B"
        assert moved.size == 5
        assert moved.object_key == "/a/b.txt"

    def test_rename_directory_does_not_cascade(self, test_db):
        FileRepository.insert_directory("/old", NOW)
        add_file("/old/child.txt")

        FileRepository.rename_path("/old", "/new")

        assert FileRepository.lookup("/new").is_dir is True
        assert FileRepository.lookup("/old/child.txt") is not None
        assert FileRepository.lookup("/new/child.txt") is None

    def test_rename_replaces_destination_record(self, test_db):
        add_file("/src.txt", bucket_id="A", size=1)
        add_file("/dst.txt", bucket_id="B", size=2)

        assert FileRepository.rename_path("/src.txt", "/dst.txt") is True

        record = FileRepository.lookup("/dst.txt")
        assert record.bucket_id == "A"
        assert record.size == 1

    def test_rename_missing_source(self, test_db):
        assert FileRepository.rename_path("/ghost", "/other") is False
        assert FileRepository.lookup("/other") is None


class TestKeyOwner:
    def test_finds_renamed_owner(self, test_db):
        add_file("/a/b.txt", bucket_id="A")
        FileRepository.rename_path("/a/b.txt", "/a/c.txt")

        assert FileRepository.key_owner("A", "/a/b.txt") == "/a/c.txt"
        assert FileRepository.key_owner("B", "/a/b.txt") is None

    def test_ignores_directories(self, test_db):
        FileRepository.insert_directory("/d", NOW)
        assert FileRepository.key_owner(DIRECTORY_BUCKET_ID, "/d") is None
