"""Object I/O against a shard, local or remote."""

from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterator, Mapping, Optional, Union

from common.constants import DEFAULT_CONTENT_TYPE
from common.logging_config import get_logger
from gateway.local_object_store import LocalObjectStore
from gateway.remote_forwarder import RemoteForwarder
from gateway.schemas.shards import ShardDescriptor

logger = get_logger(__name__)

FORWARDED_REQUEST_HEADERS = ("range", "if-none-match", "if-modified-since", "if-match")

PASSTHROUGH_RESPONSE_HEADERS = (
    "content-type",
    "content-length",
    "content-range",
    "content-encoding",
    "content-disposition",
    "cache-control",
    "accept-ranges",
    "etag",
    "last-modified",
)


@dataclass
class ObjectBody:
    """
    An object response ready to relay to the client.

    close, when set, must be awaited after the body has been consumed.
    """
    status_code: int
    headers: Dict[str, str]
    body: Union[Iterator[bytes], AsyncIterator[bytes]]
    close: Optional[Callable[[], Awaitable[None]]] = None


class ObjectService:
    def __init__(self, local_store: Optional[LocalObjectStore] = None, forwarder_factory=None):
        self.local_store = local_store or LocalObjectStore()
        self.forwarder_factory = forwarder_factory or RemoteForwarder

    async def put_object(
        self,
        shard: ShardDescriptor,
        key: str,
        data: bytes,
        content_type: str = DEFAULT_CONTENT_TYPE
    ) -> None:
        """
        Store bytes under key at shard.

        Raises:
            ShardConfigError: If a remote shard is misconfigured
            UpstreamFailureError: If a remote shard rejects the write
        """
        if not shard.is_remote:
            self.local_store.put(shard, key, data, content_type)
            return

        async with self.forwarder_factory() as forwarder:
            await forwarder.forward(
                shard, "PUT", key,
                headers={"Content-Type": content_type},
                body=data
            )

    async def open_object(
        self,
        shard: ShardDescriptor,
        key: str,
        request_headers: Optional[Mapping[str, str]] = None
    ) -> Optional[ObjectBody]:
        """
        Open an object for streaming to the client.

        Returns:
            ObjectBody, or None when a local shard has no such object.
            Remote responses are returned whatever their status.
        """
        if not shard.is_remote:
            stored = self.local_store.head(shard, key)
            if stored is None:
                return None
            return ObjectBody(
                status_code=200,
                headers={
                    "Content-Type": stored.content_type,
                    "Content-Length": str(stored.size),
                    "ETag": stored.http_etag,
                },
                body=self.local_store.read_streaming(shard, key),
            )

        forwarded = {}
        if request_headers:
            for name in FORWARDED_REQUEST_HEADERS:
                value = request_headers.get(name)
                if value:
                    forwarded[name] = value

        forwarder = self.forwarder_factory()
        try:
            upstream = await forwarder.open(shard, key, headers=forwarded)
        except Exception:
            await forwarder.close()
            raise

        async def close():
            await upstream.aclose()
            await forwarder.close()

        headers = {
            name: upstream.headers[name]
            for name in PASSTHROUGH_RESPONSE_HEADERS
            if name in upstream.headers
        }
        headers["Access-Control-Allow-Origin"] = "*"

        return ObjectBody(
            status_code=upstream.status_code,
            headers=headers,
            body=upstream.aiter_raw(),
            close=close,
        )

    async def delete_object(self, shard: ShardDescriptor, key: str) -> bool:
        """
        Delete the object under key at shard, if any.

        Returns:
            True if the shard reported the object as deleted
        """
        if not shard.is_remote:
            return self.local_store.delete(shard, key)

        async with self.forwarder_factory() as forwarder:
            response = await forwarder.forward(shard, "DELETE", key)

        if not response.is_success:
            logger.warning(f"Remote delete of {key} on shard {shard.id} returned {response.status_code}")
        return response.is_success
