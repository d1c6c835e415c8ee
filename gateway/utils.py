"""Utility helper functions for the gateway."""

import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import unquote, urlsplit

from common.constants import LOCK_TOKEN_SCHEME, ROOT_PATH
from gateway.exceptions import BadRequestError


def normalize_path(path: str) -> str:
    """
    Canonical form of an already percent-decoded request path.

    A single trailing slash is dropped except for the root.

    Args:
        path: Decoded URL path

    Returns:
        Normalized path beginning with "/"
    """
    if not path:
        return ROOT_PATH
    if not path.startswith("/"):
        path = f"/{path}"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def destination_path(destination: Optional[str]) -> str:
    """
    Target path of a MOVE from its Destination header.

    Only the path component of the URL is used; it is percent-decoded
    and normalized.

    Raises:
        BadRequestError: If the header is missing or has no usable path
    """
    if not destination:
        raise BadRequestError("Missing Destination header")

    path = unquote(urlsplit(destination.strip()).path)
    if not path.startswith("/"):
        raise BadRequestError(f"Destination is not an absolute URL: {destination}")

    return normalize_path(path)


def generate_lock_token() -> str:
    """
    Generate a fresh opaque lock token URI.

    Returns:
        Token string in format: opaquelocktoken:{uuid4}
    """
    return f"{LOCK_TOKEN_SCHEME}{uuid.uuid4()}"


def utc_now() -> datetime:
    """
    Current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """
    Parse a declared Content-Length header.

    Returns:
        Non-negative integer, or None if absent or not a number
    """
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None
