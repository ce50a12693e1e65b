"""Storage provider protocol definitions."""
from typing import Protocol, Optional, runtime_checkable

from .config import StorageConfig
from .models import (
    ListObjectsResult,
    ObjectTag,
    PresignedRequest,
    UploadedPart,
    UploadResult,
)


@runtime_checkable
class StorageProvider(Protocol):
    """Core storage provider protocol for duck typing."""

    config: StorageConfig

    async def upload(
        self,
        file: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload file to storage in a single request."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete file from storage."""
        ...

    async def exists(self, key: str) -> bool:
        """Check if file exists in storage."""
        ...

    async def list_objects_page(
        self,
        prefix: str = "",
        delimiter: Optional[str] = "/",
        continuation_token: Optional[str] = None,
        max_keys: Optional[int] = None
    ) -> ListObjectsResult:
        """List one page of objects and common prefixes under a prefix."""
        ...

    async def batch_delete(self, keys: list[str]) -> dict[str, bool]:
        """Delete many keys in one request."""
        ...

    async def get_object_tagging(self, key: str) -> list[ObjectTag]:
        """Read the whole tag set of an object."""
        ...

    async def put_object_tagging(self, key: str, tags: list[ObjectTag]) -> None:
        """Replace the whole tag set of an object."""
        ...

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
    ) -> PresignedRequest:
        """Generate a presigned GET URL for direct download."""
        ...

    async def multipart_upload_start(
        self,
        key: str,
        content_type: Optional[str] = None
    ) -> str:
        """Start multipart upload."""
        ...

    async def multipart_upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        """Upload part in multipart upload."""
        ...

    async def multipart_upload_complete(
        self,
        upload_id: str,
        key: str,
        parts: list[UploadedPart]
    ) -> UploadResult:
        """Complete multipart upload."""
        ...

    async def multipart_upload_abort(self, upload_id: str, key: str) -> None:
        """Abort multipart upload and drop its parts."""
        ...

    async def health_check(self) -> bool:
        """Check storage connectivity and permissions."""
        ...
