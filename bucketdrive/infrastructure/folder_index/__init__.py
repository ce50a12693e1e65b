"""Folder index store backends."""
from __future__ import annotations

from typing import Optional

from bucketdrive.application.ports.folder_index import FolderIndexStore
from bucketdrive.core.config import Settings, settings as default_settings
from bucketdrive.core.logging_config import get_logger
from .json_file import JsonFileFolderIndexStore
from .memory import InMemoryFolderIndexStore
from .redis import RedisFolderIndexStore

logger = get_logger(__name__)

_memory_store: Optional[InMemoryFolderIndexStore] = None


async def create_folder_index_store(config: Optional[Settings] = None) -> FolderIndexStore:
    """Build the store named by ``drive.folder_index_backend``.

    The memory backend is shared per process so sessions for the same
    drive see each other's folders.
    """
    global _memory_store

    cfg = config or default_settings
    backend = cfg.drive.folder_index_backend
    if backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryFolderIndexStore()
        return _memory_store
    if backend == "file":
        return JsonFileFolderIndexStore(cfg.drive.folder_index_path)
    if backend == "redis":
        from bucketdrive.infrastructure.cache.redis_cache import get_redis_cache

        return RedisFolderIndexStore(await get_redis_cache())
    raise ValueError(f"Unknown folder index backend: {backend}")


__all__ = [
    "InMemoryFolderIndexStore",
    "JsonFileFolderIndexStore",
    "RedisFolderIndexStore",
    "create_folder_index_store",
]
