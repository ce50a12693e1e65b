"""Cache backends."""
from .redis_cache import RedisCache, get_redis_cache, init_redis_cache, shutdown_redis_cache

__all__ = ["RedisCache", "get_redis_cache", "init_redis_cache", "shutdown_redis_cache"]
