"""Admin API routes: shared-secret-gated access to the shard list."""

import json
from typing import Optional

from fastapi import APIRouter, Header, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from common.constants import ADMIN_SECRET_HEADER, SHARDS_CONFIG_KEY
from common.logging_config import get_logger
from gateway.auth import verify_admin_secret
from gateway.config_loader import load_gateway_config
from gateway.exceptions import BadRequestError, ConflictError
from gateway.repositories.config_repository import ConfigRepository
from gateway.schemas.common import ErrorResponse
from gateway.schemas.shards import ShardListDocument

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

ADMIN_METHODS = ("GET", "POST")


@router.get("/config", responses={401: {"model": ErrorResponse}})
async def get_shard_config(
    admin_secret: Optional[str] = Header(None, alias=ADMIN_SECRET_HEADER)
):
    """
    Return the stored shard-list document.

    Returns:
        - Raw JSON array as stored ("[]" if unset)

    Raises:
        - 401: Missing or wrong admin secret
    """
    verify_admin_secret(admin_secret, load_gateway_config())

    raw = ConfigRepository.get(SHARDS_CONFIG_KEY)
    return Response(content=raw or "[]", media_type="application/json")


@router.post(
    "/config",
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}}
)
async def save_shard_config(
    request: Request,
    admin_secret: Optional[str] = Header(None, alias=ADMIN_SECRET_HEADER)
):
    """
    Replace the shard-list document.

    Parameters:
        - Body: JSON array of shard descriptors
          ({"id", "type", "bucketName", "endpoint", "accessKeyId", "secretAccessKey", "region"})

    Returns:
        - "Saved"

    Raises:
        - 400: Body is not a JSON array, an entry is invalid, or ids repeat
        - 401: Missing or wrong admin secret
    """
    verify_admin_secret(admin_secret, load_gateway_config())

    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadRequestError(f"Invalid JSON: {e}")

    if not isinstance(payload, list):
        raise BadRequestError("Config must be an array")

    try:
        document = ShardListDocument.model_validate({"shards": payload})
    except ValidationError as e:
        raise BadRequestError(f"Invalid shard entry: {e.errors(include_url=False)[0]['msg']}")

    ids = [shard.id for shard in document.shards]
    if len(ids) != len(set(ids)):
        raise BadRequestError("Shard ids must be unique")

    ConfigRepository.put(SHARDS_CONFIG_KEY, json.dumps(payload))
    logger.info(f"Shard list replaced [shards={len(ids)}]")

    return PlainTextResponse("Saved", status_code=status.HTTP_200_OK)


@router.api_route(
    "/config",
    methods=["PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "PROPFIND", "MKCOL", "MOVE", "LOCK", "UNLOCK"],
    include_in_schema=False
)
async def reject_config_method(
    request: Request,
    admin_secret: Optional[str] = Header(None, alias=ADMIN_SECRET_HEADER)
):
    verify_admin_secret(admin_secret, load_gateway_config())
    raise ConflictError(f"Method {request.method} not allowed", allowed_methods=ADMIN_METHODS)
