"""Delimiter listing of one folder level, following continuation tokens."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from bucketdrive.application.ports.storage import ListPage, ObjectStoragePort, ObjectSummary
from bucketdrive.application.utils.storage import guess_content_type
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.drive import DriveFile
from bucketdrive.domain.drive.keys import DELIMITER, leaf_name

logger = get_logger(__name__)


@dataclass
class DirectoryListing:
    prefix: str
    files: list[DriveFile] = field(default_factory=list)
    folder_prefixes: list[str] = field(default_factory=list)


class DirectoryLister:
    """List the immediate children of a prefix without walking the bucket."""

    def __init__(self, storage: ObjectStoragePort, *, signed_url_ttl: int = 24 * 3600):
        self._storage = storage
        self._signed_url_ttl = signed_url_ttl

    async def fetch_page(self, prefix: str, continuation_token: Optional[str] = None) -> ListPage:
        return await self._storage.list_objects_page(
            prefix=prefix,
            delimiter=DELIMITER,
            continuation_token=continuation_token,
        )

    async def iter_pages(self, prefix: str) -> AsyncIterator[DirectoryListing]:
        """Yield one converted listing per page, for incremental rendering."""
        token: Optional[str] = None
        pages = 0
        while True:
            page = await self.fetch_page(prefix, token)
            pages += 1
            files = await self._to_drive_files(prefix, page.contents)
            yield DirectoryListing(prefix=prefix, files=files, folder_prefixes=list(page.common_prefixes))
            if not page.is_truncated or not page.next_continuation_token:
                break
            token = page.next_continuation_token
        logger.debug("Listed prefix", prefix=prefix, pages=pages)

    async def list(self, prefix: str) -> DirectoryListing:
        """Accumulate every page into one listing; prefixes are de-duplicated."""
        result = DirectoryListing(prefix=prefix)
        seen_keys: set[str] = set()
        seen_prefixes: set[str] = set()
        async for chunk in self.iter_pages(prefix):
            for drive_file in chunk.files:
                if drive_file.full_path not in seen_keys:
                    seen_keys.add(drive_file.full_path)
                    result.files.append(drive_file)
            for folder_prefix in chunk.folder_prefixes:
                if folder_prefix not in seen_prefixes:
                    seen_prefixes.add(folder_prefix)
                    result.folder_prefixes.append(folder_prefix)
        return result

    async def to_drive_file(self, obj: ObjectSummary, parent: str) -> DriveFile:
        info = self._storage.info()
        presigned = await self._storage.generate_presigned_url(obj.key, expires_in=self._signed_url_ttl)
        return DriveFile(
            full_path=obj.key,
            name=leaf_name(obj.key),
            parent=parent,
            size=obj.size,
            content_type=guess_content_type(obj.key),
            bucket_name=info.bucket,
            bucket_url=info.bucket_url,
            url=presigned.url,
            created_at=obj.last_modified,
        )

    async def _to_drive_files(self, prefix: str, contents: list[ObjectSummary]) -> list[DriveFile]:
        # The zero-byte marker some tools create for a folder lists as its own prefix
        objects = [obj for obj in contents if obj.key != prefix]
        return list(await asyncio.gather(*(self.to_drive_file(obj, prefix) for obj in objects)))
