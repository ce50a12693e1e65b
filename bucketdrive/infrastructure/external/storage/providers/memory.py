"""In-process storage provider.

Keeps objects, tag sets and pending multipart uploads in dictionaries. It
follows the S3 listing contract (delimiter grouping, ``max_keys`` pages and
continuation tokens) closely enough for local runs and tests.
"""
import hashlib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from bucketdrive.core.logging_config import get_logger
from ..base import StorageProvider
from ..config import StorageConfig
from ..models import (
    ListObjectsResult,
    ObjectTag,
    PresignedRequest,
    StorageObject,
    UploadedPart,
    UploadResult,
)
from ..exceptions import ConfigurationError, NotFoundError, StorageError

logger = get_logger(__name__)


@dataclass
class _StoredObject:
    data: bytes
    content_type: Optional[str]
    etag: str
    last_modified: datetime
    tags: list[ObjectTag] = field(default_factory=list)


@dataclass
class _PendingUpload:
    key: str
    content_type: Optional[str]
    parts: dict[int, bytes] = field(default_factory=dict)


class InMemoryProvider(StorageProvider):
    """Dictionary-backed bucket."""

    def __init__(self, config: StorageConfig):
        self.config = config
        self.bucket = config.bucket or "memory"
        self._objects: dict[str, _StoredObject] = {}
        self._uploads: dict[str, _PendingUpload] = {}

    @property
    def keys(self) -> list[str]:
        return sorted(self._objects)

    def read(self, key: str) -> bytes:
        try:
            return self._objects[key].data
        except KeyError:
            raise NotFoundError(f"Object not found: {key}")

    @property
    def pending_uploads(self) -> list[str]:
        return list(self._uploads)

    async def upload(
        self,
        file: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        etag = hashlib.md5(file).hexdigest()
        self._put(key, bytes(file), content_type, etag)
        logger.debug("Stored object", key=key, size=len(file))
        return UploadResult(key=key, etag=etag, size=len(file), content_type=content_type)

    async def delete(self, key: str) -> bool:
        # Deleting a missing key succeeds, as on S3
        self._objects.pop(key, None)
        return True

    async def exists(self, key: str) -> bool:
        return key in self._objects

    async def list_objects_page(
        self,
        prefix: str = "",
        delimiter: Optional[str] = "/",
        continuation_token: Optional[str] = None,
        max_keys: Optional[int] = None
    ) -> ListObjectsResult:
        limit = max_keys or self.config.max_keys
        entries: dict[str, Optional[str]] = {}
        for key in self._objects:
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                common = prefix + rest[:rest.index(delimiter) + len(delimiter)]
                entries[common] = None
            else:
                entries[key] = key

        ordered = sorted(entries)
        if continuation_token:
            ordered = [name for name in ordered if name > continuation_token]
        page, remaining = ordered[:limit], ordered[limit:]

        objects = []
        prefixes = []
        for name in page:
            if entries[name] is None:
                prefixes.append(name)
            else:
                stored = self._objects[name]
                objects.append(
                    StorageObject(
                        key=name,
                        size=len(stored.data),
                        etag=stored.etag,
                        last_modified=stored.last_modified,
                    )
                )

        return ListObjectsResult(
            prefix=prefix,
            objects=objects,
            common_prefixes=prefixes,
            is_truncated=bool(remaining),
            next_continuation_token=page[-1] if remaining else None,
        )

    async def batch_delete(self, keys: list[str]) -> dict[str, bool]:
        results = {}
        for key in keys:
            results[key] = await self.delete(key)
        return results

    async def get_object_tagging(self, key: str) -> list[ObjectTag]:
        return list(self._require(key).tags)

    async def put_object_tagging(self, key: str, tags: list[ObjectTag]) -> None:
        self._require(key).tags = list(tags)

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
    ) -> PresignedRequest:
        base = self.config.resolved_bucket_url() or f"memory://{self.bucket}"
        signature = hashlib.sha256(f"GET:{key}:{expires_in}".encode()).hexdigest()
        url = f"{base}/{quote(key)}?X-Amz-Expires={expires_in}&X-Amz-Signature={signature}"
        return PresignedRequest(url=url, expires_in=expires_in)

    async def health_check(self) -> bool:
        return True

    async def multipart_upload_start(
        self,
        key: str,
        content_type: Optional[str] = None
    ) -> str:
        upload_id = uuid.uuid4().hex
        self._uploads[upload_id] = _PendingUpload(key=key, content_type=content_type)
        return upload_id

    async def multipart_upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        pending = self._pending(upload_id, key)
        pending.parts[part_number] = bytes(data)
        return UploadedPart(part_number=part_number, etag=hashlib.md5(data).hexdigest())

    async def multipart_upload_complete(
        self,
        upload_id: str,
        key: str,
        parts: list[UploadedPart]
    ) -> UploadResult:
        pending = self._pending(upload_id, key)
        chunks = []
        for part in sorted(parts, key=lambda p: p.part_number):
            data = pending.parts.get(part.part_number)
            if data is None or hashlib.md5(data).hexdigest() != part.etag:
                raise StorageError(f"Invalid part {part.part_number} for upload {upload_id}")
            chunks.append(data)

        body = b"".join(chunks)
        etag = f"{hashlib.md5(body).hexdigest()}-{len(chunks)}"
        self._put(key, body, pending.content_type, etag)
        del self._uploads[upload_id]
        logger.debug("Completed multipart upload", key=key, parts=len(chunks), size=len(body))
        return UploadResult(key=key, etag=etag, size=len(body), content_type=pending.content_type)

    async def multipart_upload_abort(self, upload_id: str, key: str) -> None:
        self._pending(upload_id, key)
        del self._uploads[upload_id]

    def _put(self, key: str, data: bytes, content_type: Optional[str], etag: str) -> None:
        self._objects[key] = _StoredObject(
            data=data,
            content_type=content_type,
            etag=etag,
            last_modified=datetime.now(timezone.utc),
        )

    def _require(self, key: str) -> _StoredObject:
        stored = self._objects.get(key)
        if stored is None:
            raise NotFoundError(f"Object not found: {key}")
        return stored

    def _pending(self, upload_id: str, key: str) -> _PendingUpload:
        pending = self._uploads.get(upload_id)
        if pending is None or pending.key != key:
            raise NotFoundError(f"No such upload: {upload_id}")
        return pending


async def build_memory_provider(config: StorageConfig) -> InMemoryProvider:
    """Build in-memory storage provider."""
    if not config.bucket:
        raise ConfigurationError("Bucket name is required")
    return InMemoryProvider(config)
