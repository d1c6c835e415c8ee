"""Pydantic schemas for configuration documents and API responses."""

from gateway.schemas.shards import ShardDescriptor, ShardListDocument
from gateway.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "ShardDescriptor",
    "ShardListDocument",
    "ErrorResponse",
    "HealthResponse",
]
