"""API routes package."""

from gateway.routes.admin_routes import router as admin_router
from gateway.routes.dav_routes import router as dav_router

__all__ = ["admin_router", "dav_router"]
