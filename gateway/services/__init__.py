"""Service layer for WebDAV semantics and object I/O."""

from gateway.services.dav_service import DavService
from gateway.services.object_service import ObjectBody, ObjectService

__all__ = [
    "DavService",
    "ObjectBody",
    "ObjectService",
]
