"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""
    status: str
    service: str
