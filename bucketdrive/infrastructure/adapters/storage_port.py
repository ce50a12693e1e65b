"""Infrastructure adapter that implements the application ObjectStoragePort
by delegating to the concrete StorageProvider and translating models.

Provider failures surface as ``StoreRequestException`` so the application
layer only ever handles business exceptions.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from bucketdrive.application.ports.storage import (
    CompletedPart,
    ListPage,
    ObjectStoragePort,
    ObjectSummary,
    PresignedURL,
    StorageInfo,
    UploadOutcome,
)
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.common.exceptions import StoreRequestException
from bucketdrive.domain.drive import Tag
from bucketdrive.infrastructure.external.storage import (
    ObjectTag,
    StorageError,
    StorageProvider,
    StorageType,
    UploadedPart,
)
from bucketdrive.infrastructure.external.storage.utils import call_with_retry

logger = get_logger(__name__)


class StorageProviderPortAdapter(ObjectStoragePort):
    def __init__(self, provider: StorageProvider):
        self.provider = provider

    def info(self) -> StorageInfo:
        cfg = getattr(self.provider, "config", None)
        stype = getattr(cfg, "type", None)
        return StorageInfo(
            type=StorageType(stype).value if stype is not None else "",
            bucket=getattr(cfg, "bucket", None),
            region=getattr(cfg, "region", None),
            bucket_url=cfg.resolved_bucket_url() if cfg is not None else None,
            supports_tagging=bool(getattr(cfg, "supports_tagging", False)),
        )

    async def list_objects_page(
        self,
        prefix: str = "",
        delimiter: str = "/",
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        result = await self._read(
            "list_objects",
            self.provider.list_objects_page,
            prefix,
            delimiter,
            continuation_token,
        )
        return ListPage(
            prefix=result.prefix,
            contents=[
                ObjectSummary(
                    key=obj.key,
                    size=int(obj.size or 0),
                    last_modified=obj.last_modified,
                    etag=obj.etag,
                )
                for obj in result.objects
            ],
            common_prefixes=list(result.common_prefixes),
            is_truncated=result.is_truncated,
            next_continuation_token=result.next_continuation_token,
        )

    async def exists(self, key: str) -> bool:
        return await self._read("exists", self.provider.exists, key)

    async def delete(self, key: str) -> bool:
        return await self._write("delete", self.provider.delete, key)

    async def batch_delete(self, keys: list[str]) -> dict[str, bool]:
        return await self._write("batch_delete", self.provider.batch_delete, keys)

    async def get_object_tags(self, key: str) -> list[Tag]:
        tags = await self._read("get_object_tagging", self.provider.get_object_tagging, key)
        return [Tag(key=t.key, value=t.value) for t in tags]

    async def put_object_tags(self, key: str, tags: list[Tag]) -> None:
        await self._write(
            "put_object_tagging",
            self.provider.put_object_tagging,
            key,
            [ObjectTag(key=t.key, value=t.value) for t in tags],
        )

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
    ) -> PresignedURL:
        presigned = await self._read(
            "generate_presigned_url",
            self.provider.generate_presigned_url,
            key,
            expires_in,
        )
        return PresignedURL(url=presigned.url, expires_in=int(presigned.expires_in or expires_in))

    async def upload(
        self,
        data: bytes,
        key: str,
        content_type: Optional[str] = None,
    ) -> UploadOutcome:
        result = await self._write("upload", self.provider.upload, data, key, content_type)
        return UploadOutcome(
            key=result.key,
            etag=result.etag,
            size=int(result.size or 0),
            content_type=result.content_type or content_type,
        )

    async def multipart_upload_start(self, key: str, content_type: Optional[str] = None) -> str:
        return await self._write("multipart_upload_start", self.provider.multipart_upload_start, key, content_type)

    async def multipart_upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes,
    ) -> CompletedPart:
        part = await self._write(
            "multipart_upload_part",
            self.provider.multipart_upload_part,
            key,
            upload_id,
            part_number,
            data,
        )
        return CompletedPart(part_number=part.part_number, etag=part.etag)

    async def multipart_upload_complete(
        self,
        key: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> UploadOutcome:
        result = await self._write(
            "multipart_upload_complete",
            self.provider.multipart_upload_complete,
            upload_id,
            key,
            [UploadedPart(part_number=p.part_number, etag=p.etag) for p in parts],
        )
        return UploadOutcome(
            key=result.key,
            etag=result.etag,
            size=int(result.size or 0),
            content_type=result.content_type,
        )

    async def multipart_upload_abort(self, key: str, upload_id: str) -> None:
        await self._write("multipart_upload_abort", self.provider.multipart_upload_abort, upload_id, key)

    async def _read(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        # Safe to repeat, so transient failures go through the retry policy
        attempts = getattr(getattr(self.provider, "config", None), "max_retry_attempts", 1)
        try:
            return await call_with_retry(attempts, func, *args)
        except StorageError as e:
            raise self._translate(operation, e) from e

    async def _write(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        try:
            return await func(*args)
        except StorageError as e:
            raise self._translate(operation, e) from e

    @staticmethod
    def _translate(operation: str, e: StorageError) -> StoreRequestException:
        logger.warning("Store request failed", operation=operation, error=str(e), error_type=type(e).__name__)
        return StoreRequestException(operation, str(e), details={"error_type": type(e).__name__})
