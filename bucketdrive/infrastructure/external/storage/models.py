"""Storage data transfer objects."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class StorageObject(BaseModel):
    """Storage object metadata."""
    key: str
    size: int
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None


class ListObjectsResult(BaseModel):
    """One page of a delimiter listing."""
    prefix: str = ""
    objects: list[StorageObject] = Field(default_factory=list)
    common_prefixes: list[str] = Field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None


class UploadResult(BaseModel):
    """Upload operation result."""
    key: str
    etag: Optional[str] = None
    size: int
    content_type: Optional[str] = None


class UploadedPart(BaseModel):
    """Acknowledged part of a multipart upload."""
    part_number: int
    etag: str


class PresignedRequest(BaseModel):
    """Presigned GET request for direct download."""
    url: str
    expires_in: int


class ObjectTag(BaseModel):
    """Single entry of an object's tag set."""
    key: str
    value: str
