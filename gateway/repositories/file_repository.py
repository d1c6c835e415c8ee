"""File repository: the metadata index over the flat files table."""

import sqlite3
from datetime import datetime
from typing import List, Optional, Tuple

from common.constants import DIRECTORY_BUCKET_ID, ROOT_PATH
from common.logging_config import get_logger
from common.types import FileRecord
from gateway.database import get_db_connection
from gateway.exceptions import ConflictError

logger = get_logger(__name__)

_COLUMNS = "path, bucket_id, is_dir, size, updated_at, object_key"


def descendant_range(path: str) -> Tuple[str, str]:
    """
    Exclusive key bounds around every path strictly below path.

    Descendants start with "<path>/"; "0" is the character right after "/",
    so "<path>0" is the first key past all of them. Comparison is binary,
    so "/Docs/x" never falls inside the range of "/docs".

    Args:
        path: Normalized path

    Returns:
        (lower, upper) bounds for "path > lower AND path < upper"
    """
    return f"{path}/", f"{path}0"


def _row_to_record(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        path=row["path"],
        bucket_id=row["bucket_id"],
        is_dir=bool(row["is_dir"]),
        size=row["size"],
        updated_at=datetime.fromisoformat(row["updated_at"]),
        object_key=row["object_key"],
    )


class FileRepository:
    @staticmethod
    def lookup(path: str, conn=None) -> Optional[FileRecord]:
        if conn is not None:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_COLUMNS} FROM files WHERE path = ?", (path,))
            row = cursor.fetchone()
            return _row_to_record(row) if row is not None else None

        with get_db_connection() as conn:
            return FileRepository.lookup(path, conn=conn)

    @staticmethod
    def list_children(path: str) -> List[FileRecord]:
        """
        Return the record for path (if any) plus its direct children only.

        Depth-one listing over a flat table: descendants are selected by
        prefix range, and any whose remainder after "<path>/" still holds a
        "/" is a grandchild and is excluded.
        """
        lower, upper = descendant_range("" if path == ROOT_PATH else path)

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_COLUMNS} FROM files
                WHERE path = ?
                   OR (path > ? AND path < ? AND instr(substr(path, ?), '/') = 0)
                ORDER BY path
                """,
                (path, lower, upper, len(lower) + 1)
            )
            return [_row_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def list_subtree(path: str) -> List[FileRecord]:
        """
        Return the record for path plus every record nested below it.
        """
        lower, upper = descendant_range(path)

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_COLUMNS} FROM files
                WHERE path = ? OR (path > ? AND path < ?)
                ORDER BY path
                """,
                (path, lower, upper)
            )
            return [_row_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def key_owner(bucket_id: str, object_key: str) -> Optional[str]:
        """
        Path of the file record whose bytes live under object_key on bucket_id.

        After a rename the owner's path differs from object_key, so a new
        path equal to that key must not reuse or touch the object.
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT path FROM files WHERE bucket_id = ? AND object_key = ? AND is_dir = 0 LIMIT 1",
                (bucket_id, object_key)
            )
            row = cursor.fetchone()
            return row["path"] if row is not None else None

    @staticmethod
    def upsert(
        path: str,
        bucket_id: str,
        is_dir: bool,
        size: int,
        now: datetime,
        object_key: Optional[str] = None,
        conn=None
    ) -> FileRecord:
        """
        Insert or replace the record at path.

        With a caller-supplied conn the write joins the caller's transaction
        and is not committed here.
        """
        if conn is None:
            with get_db_connection() as conn:
                record = FileRepository.upsert(path, bucket_id, is_dir, size, now, object_key, conn=conn)
                conn.commit()
                return record

        record = FileRecord(
            path=path,
            bucket_id=bucket_id,
            is_dir=is_dir,
            size=size,
            updated_at=now,
            object_key=object_key if object_key is not None else path,
        )

        cursor = conn.cursor()
        cursor.execute(
            f"INSERT OR REPLACE INTO files ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                record.path,
                record.bucket_id,
                1 if record.is_dir else 0,
                record.size,
                record.updated_at.isoformat(),
                record.object_key,
            )
        )

        logger.debug(f"Upserted record [path={path}] [bucket_id={bucket_id}] [size={size}]")
        return record

    @staticmethod
    def insert_directory(path: str, now: datetime) -> FileRecord:
        """
        Create a collection record.

        Raises:
            ConflictError: If any record already exists at exactly this path
        """
        record = FileRecord(
            path=path,
            bucket_id=DIRECTORY_BUCKET_ID,
            is_dir=True,
            size=0,
            updated_at=now,
            object_key=path,
        )

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    f"INSERT INTO files ({_COLUMNS}) VALUES (?, ?, 1, 0, ?, ?)",
                    (record.path, record.bucket_id, record.updated_at.isoformat(), record.object_key)
                )
                conn.commit()
            except sqlite3.IntegrityError:
                conn.rollback()
                raise ConflictError(f"Resource already exists: {path}")

        logger.info(f"Directory created [path={path}]")
        return record

    @staticmethod
    def delete_path_and_descendants(path: str) -> int:
        """
        Remove the record at path and every record whose path starts with path + "/".

        Returns:
            Number of records removed
        """
        lower, upper = descendant_range(path)

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM files WHERE path = ? OR (path > ? AND path < ?)",
                (path, lower, upper)
            )
            conn.commit()
            removed = cursor.rowcount

        logger.info(f"Deleted {removed} record(s) [path={path}]")
        return removed

    @staticmethod
    def rename_path(old_path: str, new_path: str) -> bool:
        """
        Point the record at old_path to new_path.

        Only the exact record is rewritten; descendants of a directory keep
        their old prefix. A record already at new_path is replaced.

        Returns:
            True if a record was renamed, False if old_path had none
        """
        if old_path == new_path:
            return FileRepository.lookup(old_path) is not None

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("SELECT 1 FROM files WHERE path = ?", (old_path,))
                if cursor.fetchone() is None:
                    return False

                cursor.execute("DELETE FROM files WHERE path = ?", (new_path,))
                cursor.execute("UPDATE files SET path = ? WHERE path = ?", (new_path, old_path))
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Failed to rename record [old={old_path}] [new={new_path}]: {e}", exc_info=True)
                raise

        logger.info(f"Renamed record [old={old_path}] [new={new_path}]")
        return True
