"""Shared data type definitions (FileRecord, RoutingIntent)."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class RoutingIntent(str, Enum):
    """Why a path is being resolved to a shard."""
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class FileRecord:
    """
    One row of the metadata index.

    bucket_id is the owning shard id, or the directory sentinel for
    collections. object_key is the key the bytes were stored under; it
    survives renames so moved files stay readable without copying data.
    """
    path: str
    bucket_id: str
    is_dir: bool
    size: int
    updated_at: datetime
    object_key: str
