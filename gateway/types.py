"""Gateway-specific data type definitions."""

from dataclasses import dataclass
from typing import Optional, Tuple

from common.types import FileRecord
from gateway.schemas.shards import ShardDescriptor


@dataclass(frozen=True)
class GatewayConfig:
    """
    Configuration snapshot loaded at the start of a request.

    The shard order is significant: it is the hashing domain.
    """
    shards: Tuple[ShardDescriptor, ...]
    admin_password: str

    @property
    def is_configured(self) -> bool:
        return len(self.shards) > 0

    def find_shard(self, shard_id: str) -> Optional[ShardDescriptor]:
        for shard in self.shards:
            if shard.id == shard_id:
                return shard
        return None


@dataclass(frozen=True)
class ShardRoutingDecision:
    """
    Result of resolving one path; never persisted.

    pinned is True when the shard came from an existing metadata record
    rather than from hashing the path.
    """
    path: str
    shard: ShardDescriptor
    pinned: bool
    record: Optional[FileRecord] = None

    @property
    def object_key(self) -> str:
        if self.pinned and self.record is not None:
            return self.record.object_key
        return self.path
