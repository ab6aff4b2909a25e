"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis sorted sets, shared by all
API instances. Falls back to process-local memory when Redis is not
available (single instance only).

Used by:
- Password setup (per client IP, protects token guessing)
- Enrollment submission (per client IP)
- Admin approve/reject actions (per admin)
"""

import logging
import time
import uuid

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis

from app.core.config import get_settings
from app.core.redis import get_redis

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int, message: str | None = None):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": message
                or f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retryAfter": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using Redis.

    Uses a sliding window algorithm with Redis sorted sets.

    Args:
        client: Redis client
        key: Rate limit key (e.g., "set_password:203.0.113.7")
        limit: Maximum requests allowed
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    # Use a pipeline for atomic operations
    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using in-memory storage.

    Fallback when Redis is unavailable. Note: This doesn't work
    across multiple server instances.
    """
    now = time.time()
    window_start = now - window_seconds

    timestamps = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(timestamps) >= limit:
        _memory_store[key] = timestamps
        return False

    timestamps.append(now)
    _memory_store[key] = timestamps
    return True


def reset_memory_store() -> None:
    """Clear the in-memory fallback store."""
    _memory_store.clear()


async def check_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = await get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
    message: str | None = None,
) -> None:
    """
    Raise RateLimitExceeded if the key is over its limit.

    Raises:
        RateLimitExceeded: HTTP 429 with a Retry-After header
    """
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds, message)


def get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate limit key.

    X-Forwarded-For is only honoured when the socket peer is one of the
    configured trusted proxies. The hops are then walked from the right and
    the first address that is not itself a trusted proxy is returned, since
    everything left of it was supplied by the client.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = get_settings().trusted_proxies_set

    if peer not in trusted:
        return peer

    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for:
        return peer

    hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return peer


__all__ = [
    "check_rate_limit",
    "enforce_rate_limit",
    "get_client_ip",
    "reset_memory_store",
    "RateLimitExceeded",
]
