"""Passthrough for the browser-facing static assets (admin page, index, favicon)."""

from pathlib import Path
from typing import Optional

from fastapi import Response, status
from fastapi.responses import FileResponse

from common.constants import ROOT_PATH
from common.logging_config import get_logger
from gateway.config import ASSETS_DIR

logger = get_logger(__name__)

ASSET_METHODS = frozenset({"GET", "HEAD"})

INDEX_FILE = "index.html"


def is_asset_request(method: str, path: str) -> bool:
    """
    Whether a request belongs to the static site rather than to WebDAV.

    Only GET and HEAD are served as assets; every other method on these
    paths (PROPFIND on "/" in particular) goes to the WebDAV handler.
    """
    if method.upper() not in ASSET_METHODS:
        return False
    return (
        path in (ROOT_PATH, "/index.html", "/favicon.ico", "/admin")
        or path.startswith("/admin/")
    )


class AssetServer:
    def __init__(self, assets_dir: Optional[Path] = None):
        self.assets_dir = Path(assets_dir if assets_dir is not None else ASSETS_DIR).resolve()

    def resolve(self, path: str) -> Optional[Path]:
        """
        Map a request path to a file inside the assets directory.

        Returns:
            Path of an existing file, or None if missing or outside the directory
        """
        relative = path.lstrip("/")
        if relative in ("", "admin"):
            relative = INDEX_FILE if relative == "" else f"admin/{INDEX_FILE}"

        candidate = (self.assets_dir / relative).resolve()
        if candidate.is_dir():
            candidate = candidate / INDEX_FILE

        if not candidate.is_relative_to(self.assets_dir) or not candidate.is_file():
            return None
        return candidate

    def fetch(self, path: str) -> Response:
        asset = self.resolve(path)
        if asset is None:
            logger.debug(f"Asset not found: {path}")
            return Response("Not Found", status_code=status.HTTP_404_NOT_FOUND, media_type="text/plain")
        return FileResponse(asset)
