"""Authentication for WebDAV clients and the admin API."""

import base64
import binascii
import secrets
from typing import Optional, Tuple

from gateway.config import DAV_USERNAME
from gateway.exceptions import AuthError
from gateway.types import GatewayConfig


def parse_basic_credentials(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Decode an HTTP Basic Authorization header.

    Args:
        authorization: Authorization header value (format: "Basic <base64>")

    Returns:
        (username, password), or None if the header is missing or malformed
    """
    if not authorization:
        return None

    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return username, password


def verify_basic_auth(authorization: Optional[str], config: GatewayConfig) -> str:
    """
    Check Basic credentials against the shared DAV account.

    Returns:
        The authenticated username

    Raises:
        AuthError: If credentials are missing or don't match
    """
    credentials = parse_basic_credentials(authorization)
    if credentials is None:
        raise AuthError("Missing or malformed Basic credentials")

    username, password = credentials
    user_ok = secrets.compare_digest(username.encode("utf-8"), DAV_USERNAME.encode("utf-8"))
    password_ok = secrets.compare_digest(password.encode("utf-8"), config.admin_password.encode("utf-8"))
    if not (user_ok and password_ok):
        raise AuthError("Invalid credentials")

    return username


def verify_admin_secret(secret: Optional[str], config: GatewayConfig) -> None:
    """
    Check the shared secret carried by admin API requests.

    Raises:
        AuthError: If the secret is missing or wrong
    """
    if not secret or not secrets.compare_digest(secret.encode("utf-8"), config.admin_password.encode("utf-8")):
        raise AuthError("Invalid admin secret")
