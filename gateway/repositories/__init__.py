"""Repository layer for data access."""

from gateway.repositories.config_repository import ConfigRepository
from gateway.repositories.file_repository import FileRepository

__all__ = [
    "ConfigRepository",
    "FileRepository",
]
