"""
Redis Connection

Shared async Redis client. Redis backs the rate limiter; the API keeps
working (with per-process limits) when it is unavailable.
"""

import logging

from redis.asyncio import Redis, from_url

from app.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to Redis and verify the connection.

    Call this on application startup.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return redis_client


async def get_redis() -> Redis | None:
    """
    Get the Redis client, or None if Redis was not initialized.

    Usable as a FastAPI dependency.
    """
    return redis_client


def is_redis_available() -> bool:
    """Check if Redis client is initialized."""
    return redis_client is not None


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
        logger.debug("Redis connection closed")
