"""HTTP client that signs and relays object requests to remote (S3-compatible) shards."""

from typing import Dict, Mapping, Optional
from urllib.parse import quote

import httpx
from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from common.constants import DEFAULT_REMOTE_REGION, REMOTE_SIGNING_SERVICE
from common.logging_config import get_logger
from gateway.config import REMOTE_TIMEOUT_SECONDS
from gateway.exceptions import ShardConfigError, UpstreamFailureError
from gateway.schemas.shards import ShardDescriptor

logger = get_logger(__name__)

WRITE_METHODS = frozenset({"PUT", "POST"})


def require_remote_settings(shard: ShardDescriptor) -> None:
    """
    Check that a remote shard can be addressed and signed for.

    Raises:
        ShardConfigError: If endpoint, bucket or credentials are missing
    """
    missing = [
        name for name, value in (
            ("endpoint", shard.endpoint),
            ("bucketName", shard.bucket_name),
            ("accessKeyId", shard.access_key_id),
            ("secretAccessKey", shard.secret_access_key),
        )
        if not value
    ]
    if missing:
        raise ShardConfigError(
            f"Remote shard {shard.id} is missing required settings: {', '.join(missing)}"
        )


class RemoteForwarder:
    """
    Relays object operations to a remote shard.

    Every request is signed with AWS Signature Version 4 using the
    shard's own credentials. The underlying httpx client is created
    lazily and must be closed by the owner.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REMOTE_TIMEOUT_SECONDS
    ):
        self._client = None
        self._transport = transport
        self._timeout = timeout

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport, timeout=self._timeout)
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @staticmethod
    def build_url(shard: ShardDescriptor, path: str) -> str:
        """
        Canonical object URL: endpoint + bucket + percent-encoded key.

        Args:
            shard: Remote shard descriptor
            path: Object key (a normalized path starting with "/")

        Returns:
            Absolute URL of the object
        """
        require_remote_settings(shard)
        key = path if path.startswith("/") else f"/{path}"
        return f"{shard.endpoint.rstrip('/')}/{shard.bucket_name}{quote(key, safe='/')}"

    @staticmethod
    def sign(
        shard: ShardDescriptor,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None
    ) -> Dict[str, str]:
        """
        Produce the headers for a SigV4-signed request.

        The signature is scoped to the shard's region and the s3 service
        and is only valid around the X-Amz-Date it carries.

        Returns:
            Request headers including Authorization, X-Amz-Date and X-Amz-Content-SHA256
        """
        require_remote_settings(shard)
        credentials = Credentials(shard.access_key_id, shard.secret_access_key)
        request = AWSRequest(method=method, url=url, data=body or b"", headers=dict(headers or {}))
        S3SigV4Auth(credentials, REMOTE_SIGNING_SERVICE, shard.region or DEFAULT_REMOTE_REGION).add_auth(request)
        return dict(request.headers.items())

    async def forward(
        self,
        shard: ShardDescriptor,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None
    ) -> httpx.Response:
        """
        Send a signed request to a remote shard and read the full response.

        Args:
            shard: Remote shard descriptor
            method: HTTP method
            path: Object key
            headers: Extra headers to sign and send (e.g. Content-Type)
            body: Request body for writes

        Returns:
            Upstream response; read and delete responses are returned unchanged

        Raises:
            ShardConfigError: If the shard is missing endpoint or credentials
            UpstreamFailureError: If a write is rejected or the shard is unreachable
        """
        method = method.upper()
        request = self._build_request(shard, method, path, headers, body)

        try:
            response = await self._ensure_client().send(request)
        except httpx.TransportError as e:
            logger.error(f"Remote shard {shard.id} unreachable for {method} {path}: {e}")
            raise UpstreamFailureError(f"Remote shard {shard.id} unreachable: {e}")

        logger.info(f"Forwarded {method} {path} to shard {shard.id}: status={response.status_code}")

        if method in WRITE_METHODS and not response.is_success:
            raise UpstreamFailureError(
                f"Remote shard {shard.id} rejected {method} {path} with status {response.status_code}",
                upstream_status=response.status_code
            )

        return response

    async def open(
        self,
        shard: ShardDescriptor,
        path: str,
        headers: Optional[Mapping[str, str]] = None
    ) -> httpx.Response:
        """
        Start a streamed GET against a remote shard.

        The caller must aclose() the returned response once the body has
        been relayed.

        Raises:
            ShardConfigError: If the shard is missing endpoint or credentials
            UpstreamFailureError: If the shard is unreachable
        """
        request = self._build_request(shard, "GET", path, headers, None)

        try:
            response = await self._ensure_client().send(request, stream=True)
        except httpx.TransportError as e:
            logger.error(f"Remote shard {shard.id} unreachable for GET {path}: {e}")
            raise UpstreamFailureError(f"Remote shard {shard.id} unreachable: {e}")

        logger.info(f"Streaming GET {path} from shard {shard.id}: status={response.status_code}")
        return response

    def _build_request(
        self,
        shard: ShardDescriptor,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]],
        body: Optional[bytes]
    ) -> httpx.Request:
        url = self.build_url(shard, path)
        signed_headers = self.sign(shard, method, url, headers, body)
        return self._ensure_client().build_request(method, url, headers=signed_headers, content=body)
