"""Application-owned storage port abstraction (hexagonal architecture).

Defines the minimal methods the drive use cases need so that the
application layer does not depend on infrastructure details. The port is
bucket-scoped: one port instance talks to one bucket.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable
from dataclasses import dataclass, field

from bucketdrive.domain.drive import Tag


@dataclass
class PresignedURL:
    """Signed GET capability for one object."""

    url: str
    expires_in: int = 0


@dataclass
class StorageInfo:
    type: str
    bucket: Optional[str]
    region: Optional[str]
    bucket_url: Optional[str] = None
    supports_tagging: bool = False


@dataclass
class UploadOutcome:
    key: str
    etag: Optional[str]
    size: int
    content_type: Optional[str] = None


@dataclass
class ObjectSummary:
    key: str
    size: int
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass
class ListPage:
    """One page of a delimiter listing."""

    prefix: str
    contents: list[ObjectSummary] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None


@dataclass
class CompletedPart:
    part_number: int
    etag: str


@runtime_checkable
class ObjectStoragePort(Protocol):
    def info(self) -> StorageInfo: ...

    async def list_objects_page(
        self,
        prefix: str = "",
        delimiter: str = "/",
        continuation_token: Optional[str] = None,
    ) -> ListPage: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def batch_delete(self, keys: list[str]) -> dict[str, bool]: ...

    async def get_object_tags(self, key: str) -> list[Tag]: ...

    async def put_object_tags(self, key: str, tags: list[Tag]) -> None: ...

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
    ) -> PresignedURL: ...

    async def upload(
        self,
        data: bytes,
        key: str,
        content_type: Optional[str] = None,
    ) -> UploadOutcome: ...

    async def multipart_upload_start(self, key: str, content_type: Optional[str] = None) -> str: ...

    async def multipart_upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes,
    ) -> CompletedPart: ...

    async def multipart_upload_complete(
        self,
        key: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> UploadOutcome: ...

    async def multipart_upload_abort(self, key: str, upload_id: str) -> None: ...
