"""Delete everything under a prefix, child folders first."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bucketdrive.application.ports.storage import ListPage, ObjectStoragePort
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.common.exceptions import BusinessException, PartialDeleteException
from .directory_lister import DirectoryLister

logger = get_logger(__name__)

MAX_KEYS_PER_DELETE = 1000


@dataclass
class _Frame:
    prefix: str
    token: Optional[str] = None
    page: Optional[ListPage] = None


class RecursiveDeleter:
    """Walks a prefix tree with an explicit stack and batch-deletes each page.

    For every listed page the child prefixes are emptied before the page's
    own keys are deleted; truncated pages are followed with their
    continuation token. There is no transaction across pages: a failure
    leaves whatever was not reached yet in place.
    """

    def __init__(self, storage: ObjectStoragePort, lister: Optional[DirectoryLister] = None):
        self._storage = storage
        self._lister = lister or DirectoryLister(storage)

    async def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        stack: list[_Frame] = [_Frame(prefix)]

        while stack:
            frame = stack[-1]
            if frame.page is None:
                try:
                    frame.page = await self._lister.fetch_page(frame.prefix, frame.token)
                except BusinessException as exc:
                    raise PartialDeleteException(prefix, deleted, exc.message) from exc
                children = [p for p in frame.page.common_prefixes if p != frame.prefix]
                if children:
                    stack.extend(_Frame(child) for child in reversed(children))
                    continue

            page = frame.page
            keys = [obj.key for obj in page.contents]
            if keys:
                deleted += await self._delete_keys(prefix, keys, deleted)

            if page.is_truncated and page.next_continuation_token:
                frame.token = page.next_continuation_token
                frame.page = None
                continue
            stack.pop()

        logger.info("Deleted prefix", prefix=prefix, deleted=deleted)
        return deleted

    async def _delete_keys(self, root: str, keys: list[str], deleted_so_far: int) -> int:
        count = 0
        for start in range(0, len(keys), MAX_KEYS_PER_DELETE):
            batch = keys[start:start + MAX_KEYS_PER_DELETE]
            try:
                results = await self._storage.batch_delete(batch)
            except BusinessException as exc:
                logger.error("Batch delete failed", prefix=root, error=exc.message)
                raise PartialDeleteException(root, deleted_so_far + count, exc.message) from exc

            failed = [key for key in batch if results.get(key) is False]
            count += len(batch) - len(failed)
            if failed:
                logger.error("Batch delete rejected keys", prefix=root, failed=failed)
                raise PartialDeleteException(
                    root,
                    deleted_so_far + count,
                    f"{len(failed)} keys could not be deleted",
                    failed_keys=failed,
                )
        return count
