"""Pydantic schemas for the shard list document."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ShardDescriptor(BaseModel):
    """
    One configured object-storage backend.

    Field aliases follow the camelCase keys of the stored JSON document.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    type: Literal["local", "remote"] = "local"
    bucket_name: Optional[str] = Field(default=None, alias="bucketName")
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = Field(default=None, alias="accessKeyId")
    secret_access_key: Optional[str] = Field(default=None, alias="secretAccessKey", repr=False)
    region: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        return self.type == "remote"


class ShardListDocument(BaseModel):
    """Validated form of an admin POST body."""
    shards: list[ShardDescriptor]
