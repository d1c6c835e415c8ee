"""Shard routing: metadata-pinned lookups first, deterministic hashing otherwise."""

import hashlib
from typing import Optional, Sequence

from common.logging_config import get_logger
from common.types import FileRecord, RoutingIntent
from gateway.repositories.file_repository import FileRepository
from gateway.schemas.shards import ShardDescriptor
from gateway.types import GatewayConfig, ShardRoutingDecision

logger = get_logger(__name__)


def path_hash(path: str) -> int:
    """
    Unsigned 32-bit value derived from the SHA-256 digest of path.

    The first four digest bytes are read little-endian.
    """
    digest = hashlib.sha256(path.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], byteorder="little", signed=False)


def hash_shard(path: str, shards: Sequence[ShardDescriptor]) -> Optional[ShardDescriptor]:
    """
    Pick a shard for path from the current ordered shard list.

    Pure function of (path, shards). Changing the list length or order
    changes placement of new paths only; existing paths are pinned by
    their metadata record.

    Returns:
        Shard at index hash % len(shards), or None if shards is empty
    """
    if not shards:
        return None
    return shards[path_hash(path) % len(shards)]


def pinned_shard(record: Optional[FileRecord], config: GatewayConfig) -> Optional[ShardDescriptor]:
    """
    Shard recorded for an existing path, if it is still configured.

    Directory records carry a sentinel bucket id and never match.
    """
    if record is None:
        return None
    return config.find_shard(record.bucket_id)


class ShardRouter:
    """
    Resolves paths to shards for one request's configuration snapshot.
    """

    def __init__(self, config: GatewayConfig, file_repo=FileRepository):
        self.config = config
        self.file_repo = file_repo

    def route(self, path: str, intent: RoutingIntent) -> Optional[ShardRoutingDecision]:
        """
        Resolve path to a routing decision.

        Read intent consults the metadata index first and returns the
        recorded shard when it is still configured. Write intent, or a
        read with no usable record, falls back to hashing.

        Args:
            path: Normalized request path
            intent: RoutingIntent.READ or RoutingIntent.WRITE

        Returns:
            ShardRoutingDecision, or None if no shards are configured
        """
        record = None
        if intent == RoutingIntent.READ:
            record = self.file_repo.lookup(path)
            shard = pinned_shard(record, self.config)
            if shard is not None:
                return ShardRoutingDecision(path=path, shard=shard, pinned=True, record=record)
            if record is not None and not record.is_dir:
                logger.warning(
                    f"Record for {path} names unconfigured shard {record.bucket_id}, falling back to hash"
                )

        shard = hash_shard(path, self.config.shards)
        if shard is None:
            return None

        return ShardRoutingDecision(path=path, shard=shard, pinned=False, record=record)

    def resolve(self, path: str, intent: RoutingIntent) -> Optional[ShardDescriptor]:
        decision = self.route(path, intent)
        return decision.shard if decision is not None else None

    def route_for_put(self, path: str) -> Optional[ShardRoutingDecision]:
        """
        Placement for a PUT.

        Overwriting a file keeps the shard it is pinned to; a new path (or
        one whose shard was removed from the configuration) is hashed.
        """
        return self.route(path, RoutingIntent.READ)
