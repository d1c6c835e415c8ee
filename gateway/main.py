"""Entry point for the WebDAV gateway service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from gateway.config import AUTH_REALM, GATEWAY_HOST, GATEWAY_PORT
from gateway.config_loader import seed_config_store
from gateway.database import init_database
from gateway.exceptions import (
    AuthError,
    BadRequestError,
    ConflictError,
    GatewayException,
    NotConfiguredError,
    NotFoundError,
    ShardConfigError,
    UpstreamFailureError,
)
from gateway.routes.admin_routes import router as admin_router
from gateway.routes.dav_routes import router as dav_router
from gateway.schemas.common import HealthResponse

logger = setup_logging('gateway')

app = FastAPI(
    title="Sharded WebDAV Gateway",
    description="WebDAV filesystem over multiple object-storage shards with a metadata index",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize the metadata database and seed the config store.
    """
    logger.info("Gateway service starting up...")

    init_database()
    logger.info("Database initialized")

    seed_config_store()


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Authentication failed: {exc} [request_id={request_id}] path={request.url.path}"
    )
    headers = {}
    if not request.url.path.startswith("/api/admin"):
        headers["WWW-Authenticate"] = f'Basic realm="{AUTH_REALM}"'
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc), "code": "UNAUTHORIZED"},
        headers=headers
    )


@app.exception_handler(NotConfiguredError)
async def not_configured_handler(request: Request, exc: NotConfiguredError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Not configured: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "code": "NOT_CONFIGURED"}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(
        f"Not found: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "NOT_FOUND"}
    )


@app.exception_handler(BadRequestError)
async def bad_request_handler(request: Request, exc: BadRequestError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Bad request: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "BAD_REQUEST"}
    )


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Method not allowed: {exc} [request_id={request_id}] path={request.url.path}"
    )
    headers = {}
    if exc.allowed_methods:
        headers["Allow"] = ", ".join(exc.allowed_methods)
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"detail": str(exc), "code": "METHOD_NOT_ALLOWED"},
        headers=headers
    )


@app.exception_handler(UpstreamFailureError)
async def upstream_failure_handler(request: Request, exc: UpstreamFailureError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Upstream failure: {exc} [request_id={request_id}] path={request.url.path} "
        f"upstream_status={exc.upstream_status}"
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "code": "UPSTREAM_FAILURE"}
    )


@app.exception_handler(ShardConfigError)
async def shard_config_handler(request: Request, exc: ShardConfigError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Shard configuration error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "SHARD_CONFIG_ERROR"}
    )


@app.exception_handler(GatewayException)
async def gateway_exception_handler(request: Request, exc: GatewayException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Gateway exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for container healthchecks.
    Returns 200 if service is alive.
    """
    return HealthResponse(status="healthy", service="gateway")


app.include_router(admin_router)
app.include_router(dav_router)


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "gateway.main:app",
        host=GATEWAY_HOST,
        port=GATEWAY_PORT
    )


if __name__ == "__main__":
    main()
