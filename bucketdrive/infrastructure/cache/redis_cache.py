"""JSON values in Redis under a namespace."""
from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from redis import asyncio as aioredis

from bucketdrive.core.config import settings
from bucketdrive.core.logging_config import get_logger

logger = get_logger(__name__)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _json_loads(value: Optional[str]) -> Any:
    if value is None:
        return None
    return json.loads(value)


class RedisCache:
    """Small JSON cache on top of an asyncio Redis client."""

    def __init__(self, client: aioredis.Redis, namespace: str = "") -> None:
        self._client = client
        self._namespace = namespace.strip(":")

    def _format_key(self, key: str) -> str:
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> Any:
        value = await self._client.get(self._format_key(key))
        if value is None:
            return None
        return _json_loads(value)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store ``value``; ``ttl`` of None or 0 keeps it until deleted."""
        payload = _json_dumps(value)
        formatted_key = self._format_key(key)
        if ttl and ttl > 0:
            await self._client.set(formatted_key, payload, ex=ttl)
        else:
            await self._client.set(formatted_key, payload)


_redis_client: Optional[aioredis.Redis] = None
_cache_instance: Optional[RedisCache] = None
_lock = asyncio.Lock()


async def init_redis_cache(namespace: Optional[str] = None) -> RedisCache:
    global _redis_client, _cache_instance

    if _cache_instance is not None:
        return _cache_instance

    async with _lock:
        if _cache_instance is not None:
            return _cache_instance

        if not settings.redis.url:
            raise RuntimeError("REDIS__URL is not configured")

        client = aioredis.from_url(
            settings.redis.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis.max_connections,
        )

        _redis_client = client
        _cache_instance = RedisCache(
            client=client,
            namespace=namespace or settings.redis.namespace,
        )
        logger.info("Redis cache initialized", namespace=namespace or settings.redis.namespace)
        return _cache_instance


async def get_redis_cache() -> RedisCache:
    if _cache_instance is None:
        return await init_redis_cache()
    return _cache_instance


async def shutdown_redis_cache() -> None:
    global _redis_client, _cache_instance

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
        _cache_instance = None
