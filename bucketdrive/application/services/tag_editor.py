"""Read-modify-write edits of an object's tag set.

None of these operations is atomic against other writers: the whole set
is read, changed locally and written back, so the last writer wins.
"""
from __future__ import annotations

from bucketdrive.application.ports.storage import ObjectStoragePort
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.common.exceptions import (
    BlankTagKeyException,
    BusinessException,
    TaggingNotSupportedException,
)
from bucketdrive.domain.drive import DriveFile, Tag

logger = get_logger(__name__)


class TagSetEditor:
    def __init__(self, storage: ObjectStoragePort):
        self._storage = storage

    @property
    def enabled(self) -> bool:
        return self._storage.info().supports_tagging

    async def list(self, file: DriveFile) -> list[Tag]:
        if not self.enabled:
            return []
        return await self._storage.get_object_tags(file.full_path)

    async def add(self, file: DriveFile, key: str, value: str) -> None:
        self._require_tagging()
        key = key.strip()
        if not key:
            raise BlankTagKeyException()
        tags = await self._storage.get_object_tags(file.full_path)
        tags.append(Tag(key=key, value=value))
        await self._storage.put_object_tags(file.full_path, tags)
        logger.info("Tag added", key=file.full_path, tag=key)

    async def remove(self, file: DriveFile, key: str) -> None:
        self._require_tagging()
        tags = await self._storage.get_object_tags(file.full_path)
        remaining = [tag for tag in tags if tag.key != key]
        await self._storage.put_object_tags(file.full_path, remaining)
        logger.info("Tag removed", key=file.full_path, tag=key, present=len(remaining) != len(tags))

    async def edit(self, file: DriveFile, prev_tag: Tag, new_tag: Tag) -> None:
        """Replace ``prev_tag`` with ``new_tag``.

        If adding the new tag fails, the previous tag is put back on a best
        effort basis and the original error is re-raised. Should the
        compensation fail too, the file is left with neither tag.
        """
        await self.remove(file, prev_tag.key)
        try:
            await self.add(file, new_tag.key, new_tag.value)
        except BusinessException as exc:
            try:
                await self.add(file, prev_tag.key, prev_tag.value)
            except BusinessException as restore_exc:
                logger.error(
                    "Tag restore failed",
                    key=file.full_path,
                    tag=prev_tag.key,
                    error=restore_exc.message,
                )
            logger.warning("Tag not edited", key=file.full_path, tag=prev_tag.key, error=exc.message)
            raise

    def _require_tagging(self) -> None:
        if not self.enabled:
            raise TaggingNotSupportedException(self._storage.info().type)
