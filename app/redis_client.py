"""Shared async Redis connection pool."""

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import settings

_pool: redis.ConnectionPool | None = None


def get_pool() -> redis.ConnectionPool:
    global _pool
    if _pool is None:
        _pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=settings.redis_max_connections,
        )
    return _pool


def get_redis() -> redis.Redis:
    return redis.Redis(connection_pool=get_pool())


async def ping() -> bool:
    """True when Redis answers; the health check reports the result."""
    try:
        return bool(await get_redis().ping())
    except (RedisError, OSError):
        return False


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None
