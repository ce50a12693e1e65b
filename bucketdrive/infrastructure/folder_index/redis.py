"""Folder index kept in Redis as a JSON list."""
from __future__ import annotations

from typing import Any

from bucketdrive.infrastructure.cache.redis_cache import RedisCache


class RedisFolderIndexStore:
    def __init__(self, cache: RedisCache):
        self._cache = cache

    @staticmethod
    def key_for(drive_id: str) -> str:
        return f"local_folders:{drive_id}"

    async def load(self, drive_id: str) -> list[dict[str, Any]]:
        return await self._cache.get(self.key_for(drive_id)) or []

    async def save(self, drive_id: str, entries: list[dict[str, Any]]) -> None:
        await self._cache.set(self.key_for(drive_id), entries)
