"""Local shard storage: object bytes and HTTP metadata on disk, one directory per bucket."""

import hashlib
import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from common.constants import DEFAULT_CONTENT_TYPE, STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from gateway.config import OBJECT_STORE_ROOT
from gateway.schemas.shards import ShardDescriptor

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredObject:
    """
    Metadata kept alongside a stored object.
    """
    key: str
    size: int
    content_type: str
    etag: str
    uploaded_at: datetime
    data_path: Path

    @property
    def http_etag(self) -> str:
        return f'"{self.etag}"'


class LocalObjectStore:
    """
    Flat key -> bytes store on the local filesystem.

    Keys are hashed into file names so that "/a" and "/a/b" can coexist,
    as they do in a real object store.
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root if root is not None else OBJECT_STORE_ROOT)

    def bucket_dir(self, shard: ShardDescriptor) -> Path:
        """
        Directory holding a shard's objects.

        Args:
            shard: Local shard descriptor

        Returns:
            Path named after the bucket, or the shard id when no bucket is set
        """
        return self.root / (shard.bucket_name or shard.id)

    def _object_paths(self, shard: ShardDescriptor, key: str):
        name = hashlib.sha256(key.encode("utf-8")).hexdigest()
        bucket = self.bucket_dir(shard)
        return bucket / f"{name}.obj", bucket / f"{name}.meta.json"

    def put(self, shard: ShardDescriptor, key: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> StoredObject:
        """
        Write object bytes and metadata, replacing any previous object.

        Each file is written to a temp file and renamed into place.

        Args:
            shard: Local shard descriptor
            key: Object key
            data: Object bytes
            content_type: MIME type returned on later reads

        Returns:
            StoredObject describing what was written

        Raises:
            OSError: If the write fails
        """
        data_path, meta_path = self._object_paths(shard, key)
        data_path.parent.mkdir(parents=True, exist_ok=True)

        stored = StoredObject(
            key=key,
            size=len(data),
            content_type=content_type,
            etag=hashlib.md5(data).hexdigest(),
            uploaded_at=datetime.now(timezone.utc),
            data_path=data_path,
        )

        _atomic_write(data_path, data)
        _atomic_write(meta_path, json.dumps({
            "key": stored.key,
            "size": stored.size,
            "content_type": stored.content_type,
            "etag": stored.etag,
            "uploaded_at": stored.uploaded_at.isoformat(),
        }).encode("utf-8"))

        logger.debug(f"Stored object [shard={shard.id}] [key={key}] [size={stored.size}]")
        return stored

    def head(self, shard: ShardDescriptor, key: str) -> Optional[StoredObject]:
        """
        Look up an object's metadata.

        Returns:
            StoredObject, or None if the object doesn't exist
        """
        data_path, meta_path = self._object_paths(shard, key)
        if not data_path.exists() or not meta_path.exists():
            return None

        meta = json.loads(meta_path.read_text(encoding="utf-8"))
        return StoredObject(
            key=meta["key"],
            size=meta["size"],
            content_type=meta.get("content_type") or DEFAULT_CONTENT_TYPE,
            etag=meta["etag"],
            uploaded_at=datetime.fromisoformat(meta["uploaded_at"]),
            data_path=data_path,
        )

    def read_streaming(
        self,
        shard: ShardDescriptor,
        key: str,
        piece_size: int = STREAM_PIECE_SIZE_BYTES
    ) -> Iterator[bytes]:
        """
        Stream object bytes in pieces.

        Yields:
            Object data pieces

        Raises:
            FileNotFoundError: If the object does not exist
        """
        data_path, _ = self._object_paths(shard, key)
        with open(data_path, "rb") as f:
            while True:
                piece = f.read(piece_size)
                if not piece:
                    break
                yield piece

    def delete(self, shard: ShardDescriptor, key: str) -> bool:
        """
        Delete an object and its metadata.

        Returns:
            True if the object was deleted, False if it didn't exist
        """
        data_path, meta_path = self._object_paths(shard, key)
        existed = data_path.exists()
        data_path.unlink(missing_ok=True)
        meta_path.unlink(missing_ok=True)
        if existed:
            logger.debug(f"Deleted object [shard={shard.id}] [key={key}]")
        return existed

    def exists(self, shard: ShardDescriptor, key: str) -> bool:
        data_path, _ = self._object_paths(shard, key)
        return data_path.exists()


def _atomic_write(target: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
