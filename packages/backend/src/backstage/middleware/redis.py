"""Redis connection pool — backs rate limiting only.

Learn: Redis is optional. The pool is created in the app lifespan; when it
cannot be reached, get_redis() raises and callers (rate limiter, health)
carry on without it. Access decisions never touch Redis.
"""

from typing import Optional

import redis.asyncio as aioredis

from backstage.config import settings

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=2,
    )
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
