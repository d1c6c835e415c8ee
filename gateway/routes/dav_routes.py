"""WebDAV catch-all route."""

from fastapi import APIRouter, Request, Response

from common.constants import DAV_METHODS, UNSUPPORTED_DAV_METHODS
from common.logging_config import get_logger
from gateway.asset_server import AssetServer, is_asset_request
from gateway.auth import verify_basic_auth
from gateway.config_loader import load_gateway_config
from gateway.exceptions import NotConfiguredError
from gateway.services.dav_service import DavService
from gateway.utils import normalize_path

logger = get_logger(__name__)

router = APIRouter(tags=["WebDAV"])


@router.api_route(
    "/{resource_path:path}",
    methods=list(DAV_METHODS + UNSUPPORTED_DAV_METHODS),
    include_in_schema=False
)
async def webdav(request: Request, resource_path: str) -> Response:
    """
    Serve one WebDAV request.

    Order of checks:
        - Browser asset paths (GET/HEAD only) are passed to the asset server
        - Configuration is loaded fresh for this request
        - HTTP Basic credentials are verified
        - An empty shard list is refused

    Raises:
        - 401: Invalid or missing credentials
        - 503: No shards configured
        - 404/405/400/502: From the method handler
    """
    path = normalize_path(request.scope["path"])

    if is_asset_request(request.method, path):
        return AssetServer().fetch(path)

    config = load_gateway_config()

    username = verify_basic_auth(request.headers.get("Authorization"), config)
    request.state.user_id = username

    if not config.is_configured:
        logger.warning(f"Refusing {request.method} {path}: no shards configured")
        raise NotConfiguredError("System not configured. Please visit /admin/index.html")

    dav_service = DavService(config, username)
    return await dav_service.handle(request, path)
