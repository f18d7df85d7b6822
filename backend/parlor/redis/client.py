"""
Shared redis.asyncio client for the session store.

Redis is optional.  With REDIS_URL empty, or the server not answering at
startup, get_redis() returns None and parlor.redis.sessions keeps its
records in process memory.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from parlor.config import settings

logger = logging.getLogger(__name__)

_pool: aioredis.ConnectionPool | None = None
_client: aioredis.Redis | None = None


async def init_redis() -> None:
    """Open the pool and check the server answers.  Runs once in the app lifespan."""
    global _pool, _client
    if not settings.REDIS_URL:
        logger.info("REDIS_URL not set; sessions are held in memory")
        return
    _pool = aioredis.ConnectionPool.from_url(settings.REDIS_URL, decode_responses=True, max_connections=10)
    _client = aioredis.Redis(connection_pool=_pool)
    try:
        await _client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Cannot reach Redis at %s (%s); sessions are held in memory", settings.REDIS_URL, exc)
        await close_redis()
        return
    logger.info("Session store: Redis at %s", settings.REDIS_URL)


async def close_redis() -> None:
    global _pool, _client
    if _client is not None:
        await _client.aclose()
        _client = None
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def get_redis() -> aioredis.Redis | None:
    """The live client, or None when sessions fall back to memory."""
    return _client


async def redis_status() -> str:
    """One word for /health: "disabled", "connected" or "unreachable"."""
    if _client is None:
        return "disabled"
    try:
        await _client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        return "unreachable"
    return "connected"
