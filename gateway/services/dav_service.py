"""WebDAV method semantics over the metadata index and the shard object stores."""

import uuid
from typing import Optional
from urllib.parse import quote

from fastapi import Request, Response, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from common.constants import (
    DAV_COMPLIANCE_CLASSES,
    DAV_METHODS,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_LOCK_TIMEOUT,
    DIRECTORY_BUCKET_ID,
    ROOT_PATH,
)
from common.logging_config import get_logger
from common.types import FileRecord, RoutingIntent
from gateway.dav_xml import build_lock_discovery, build_multistatus, parse_lock_owner
from gateway.exceptions import ConflictError, NotConfiguredError, NotFoundError
from gateway.repositories.file_repository import FileRepository
from gateway.services.object_service import ObjectService
from gateway.shard_router import ShardRouter, pinned_shard
from gateway.schemas.shards import ShardDescriptor
from gateway.types import GatewayConfig
from gateway.utils import destination_path, generate_lock_token, parse_content_length, utc_now

logger = get_logger(__name__)

XML_MEDIA_TYPE = "application/xml; charset=utf-8"

ALLOW_HEADER = ", ".join(DAV_METHODS)


class DavService:
    """
    Stateless per-request WebDAV handler.

    Lock and unlock are accepted for client compatibility only: tokens are
    minted per call, nothing is recorded, and no request is ever refused
    because of a lock.
    """

    def __init__(
        self,
        config: GatewayConfig,
        username: str,
        file_repo=FileRepository,
        object_service: Optional[ObjectService] = None
    ):
        self.config = config
        self.username = username
        self.file_repo = file_repo
        self.router = ShardRouter(config, file_repo)
        self.object_service = object_service or ObjectService()
        self.handlers = {
            "OPTIONS": self.options,
            "HEAD": self.head,
            "LOCK": self.lock,
            "UNLOCK": self.unlock,
            "PROPFIND": self.propfind,
            "GET": self.get,
            "PUT": self.put,
            "MKCOL": self.mkcol,
            "DELETE": self.delete,
            "MOVE": self.move,
        }

    async def handle(self, request: Request, path: str) -> Response:
        """
        Dispatch a request by method.

        Raises:
            ConflictError: If the method is not supported
        """
        handler = self.handlers.get(request.method.upper())
        if handler is None:
            raise ConflictError(f"Method {request.method} not allowed", allowed_methods=DAV_METHODS)
        return await handler(request, path)

    async def options(self, request: Request, path: str) -> Response:
        return Response(
            status_code=status.HTTP_200_OK,
            headers={
                "Allow": ALLOW_HEADER,
                "DAV": DAV_COMPLIANCE_CLASSES,
                "MS-Author-Via": "DAV",
            }
        )

    async def head(self, request: Request, path: str) -> Response:
        # No existence check: HEAD always succeeds with an empty body.
        return Response(status_code=status.HTTP_200_OK)

    async def lock(self, request: Request, path: str) -> Response:
        body = await request.body()
        owner = parse_lock_owner(body) or self.username
        timeout = request.headers.get("Timeout") or DEFAULT_LOCK_TIMEOUT
        token = generate_lock_token()

        logger.info(f"Granted advisory lock [path={path}] [owner={owner}] [timeout={timeout}]")

        return Response(
            content=build_lock_discovery(token, owner, timeout, quote(path, safe="/")),
            status_code=status.HTTP_200_OK,
            media_type=XML_MEDIA_TYPE,
            headers={"Lock-Token": f"<{token}>"}
        )

    async def unlock(self, request: Request, path: str) -> Response:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    async def propfind(self, request: Request, path: str) -> Response:
        records = self.file_repo.list_children(path)

        if path == ROOT_PATH and not any(record.path == ROOT_PATH for record in records):
            records.insert(0, FileRecord(
                path=ROOT_PATH,
                bucket_id=DIRECTORY_BUCKET_ID,
                is_dir=True,
                size=0,
                updated_at=utc_now(),
                object_key=ROOT_PATH,
            ))

        if not records:
            raise NotFoundError(f"Not found: {path}")

        return Response(
            content=build_multistatus(records),
            status_code=status.HTTP_207_MULTI_STATUS,
            media_type=XML_MEDIA_TYPE
        )

    async def get(self, request: Request, path: str) -> Response:
        decision = self.router.route(path, RoutingIntent.READ)
        if decision is None:
            raise NotFoundError(f"File metadata not found: {path}")

        if not decision.pinned and self._key_owned_elsewhere(decision.shard, path, path):
            raise NotFoundError(f"File metadata not found: {path}")

        obj = await self.object_service.open_object(decision.shard, decision.object_key, request.headers)
        if obj is None:
            raise NotFoundError(f"Object not found in shard {decision.shard.id}: {path}")

        return StreamingResponse(
            obj.body,
            status_code=obj.status_code,
            headers=obj.headers,
            background=BackgroundTask(obj.close) if obj.close is not None else None
        )

    async def put(self, request: Request, path: str) -> Response:
        if path == ROOT_PATH:
            raise ConflictError("Cannot write file content to the root collection", allowed_methods=DAV_METHODS)

        decision = self.router.route_for_put(path)
        if decision is None:
            raise NotConfiguredError("No shards configured")

        shard = decision.shard
        previous = decision.record
        content_type = request.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        body = await request.body()
        declared = parse_content_length(request.headers.get("Content-Length"))
        size = declared if declared is not None else len(body)

        object_key = path
        if self._key_owned_elsewhere(shard, path, path):
            object_key = f"{path}@{uuid.uuid4().hex[:12]}"
            logger.info(f"Key {path} on shard {shard.id} belongs to a moved file, storing under {object_key}")

        await self.object_service.put_object(shard, object_key, body, content_type)

        self.file_repo.upsert(
            path=path,
            bucket_id=shard.id,
            is_dir=False,
            size=size,
            now=utc_now(),
            object_key=object_key,
        )

        if (
            decision.pinned
            and previous is not None
            and not previous.is_dir
            and previous.object_key != object_key
        ):
            await self.object_service.delete_object(shard, previous.object_key)
            logger.info(f"Removed superseded object {previous.object_key} on shard {shard.id}")

        logger.info(f"Stored {path} on shard {shard.id} [size={size}] [pinned={decision.pinned}]")
        return Response(status_code=status.HTTP_201_CREATED)

    async def mkcol(self, request: Request, path: str) -> Response:
        if path == ROOT_PATH:
            raise ConflictError("Root collection already exists", allowed_methods=DAV_METHODS)

        try:
            self.file_repo.insert_directory(path, utc_now())
        except ConflictError as e:
            e.allowed_methods = DAV_METHODS
            raise

        return Response(status_code=status.HTTP_201_CREATED)

    async def delete(self, request: Request, path: str) -> Response:
        decision = self.router.route(path, RoutingIntent.READ)

        subtree = self.file_repo.list_subtree(path)
        for record in subtree:
            if record.is_dir or record.path == path:
                continue
            await self._delete_record_object(record)

        if decision is not None:
            if decision.pinned:
                await self.object_service.delete_object(decision.shard, decision.object_key)
            elif not self._key_owned_elsewhere(decision.shard, path, path):
                await self.object_service.delete_object(decision.shard, path)

        removed = self.file_repo.delete_path_and_descendants(path)
        logger.info(f"Deleted {path} [records={removed}]")

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    async def move(self, request: Request, path: str) -> Response:
        target = destination_path(request.headers.get("Destination"))
        if ROOT_PATH in (path, target):
            raise ConflictError("The root collection cannot be moved or replaced", allowed_methods=DAV_METHODS)

        source = self.file_repo.lookup(path)
        if source is None:
            logger.warning(f"MOVE source has no record [source={path}] [destination={target}]")
        elif target != path:
            displaced = self.file_repo.lookup(target)
            if displaced is not None and not displaced.is_dir and displaced.object_key != source.object_key:
                await self._delete_record_object(displaced)

            if source.is_dir and len(self.file_repo.list_subtree(path)) > 1:
                logger.warning(
                    f"Moving directory {path} to {target}: descendants keep the old prefix"
                )

        self.file_repo.rename_path(path, target)
        return Response(status_code=status.HTTP_201_CREATED)

    def _key_owned_elsewhere(self, shard: ShardDescriptor, key: str, path: str) -> bool:
        owner = self.file_repo.key_owner(shard.id, key)
        return owner is not None and owner != path

    async def _delete_record_object(self, record: FileRecord) -> None:
        shard = pinned_shard(record, self.config)
        if shard is None:
            logger.warning(f"Cannot delete object for {record.path}: shard {record.bucket_id} not configured")
            return
        await self.object_service.delete_object(shard, record.object_key)
