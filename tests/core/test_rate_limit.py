"""
Tests for rate limiting.

Tests:
- In-memory sliding window (used when Redis is unavailable)
- Redis sliding window
- RateLimitExceeded response shape
- Client IP extraction
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import Settings
from app.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    enforce_rate_limit,
    get_client_ip,
)


@pytest.fixture
def mock_redis():
    """Create a mock Redis client with a pipeline."""
    redis = AsyncMock()
    redis.pipeline = MagicMock()
    pipe = MagicMock()
    pipe.execute = AsyncMock()
    redis.pipeline.return_value = pipe
    return redis


@pytest.mark.asyncio
async def test_memory_rate_limit_allows_up_to_limit():
    results = [await check_rate_limit("test:memory", 5, 900) for _ in range(6)]

    assert results == [True] * 5 + [False]


@pytest.mark.asyncio
async def test_memory_rate_limit_keys_are_independent():
    for _ in range(2):
        await check_rate_limit("test:a", 2, 60)

    assert await check_rate_limit("test:a", 2, 60) is False
    assert await check_rate_limit("test:b", 2, 60) is True


@pytest.mark.asyncio
async def test_redis_rate_limit(mock_redis):
    pipe = mock_redis.pipeline.return_value
    pipe.execute.side_effect = [[0, 4, 1, True], [0, 5, 1, True]]

    with patch("app.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
        assert await check_rate_limit("test:redis", 5, 900) is True
        assert await check_rate_limit("test:redis", 5, 900) is False

    pipe.zremrangebyscore.assert_called()
    pipe.expire.assert_called_with("test:redis", 900)


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory(mock_redis):
    mock_redis.pipeline.return_value.execute.side_effect = ConnectionError("redis down")

    with patch("app.core.rate_limit.get_redis", AsyncMock(return_value=mock_redis)):
        assert await check_rate_limit("test:fallback", 1, 60) is True
        assert await check_rate_limit("test:fallback", 1, 60) is False


@pytest.mark.asyncio
async def test_enforce_rate_limit_raises_429():
    await enforce_rate_limit("test:enforce", 1, 900)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await enforce_rate_limit("test:enforce", 1, 900, message="Slow down")

    exc = exc_info.value
    assert exc.status_code == 429
    assert exc.detail == {
        "error": "RATE_LIMIT_EXCEEDED",
        "message": "Slow down",
        "retryAfter": 900,
    }
    assert exc.headers["Retry-After"] == "900"


def _request(peer: str, forwarded_for: str | None = None) -> MagicMock:
    request = MagicMock()
    request.headers = {"x-forwarded-for": forwarded_for} if forwarded_for else {}
    request.client.host = peer
    return request


def _with_trusted_proxies(value: str):
    return patch(
        "app.core.rate_limit.get_settings",
        return_value=Settings(trusted_proxies=value),
    )


def test_get_client_ip_ignores_forwarded_for_from_untrusted_peer():
    request = _request("198.51.100.2", forwarded_for="203.0.113.7")

    with _with_trusted_proxies(""):
        assert get_client_ip(request) == "198.51.100.2"


def test_get_client_ip_falls_back_to_peer():
    with _with_trusted_proxies(""):
        assert get_client_ip(_request("198.51.100.2")) == "198.51.100.2"


def test_get_client_ip_behind_trusted_proxy_uses_rightmost_untrusted_hop():
    # The client prepended a fake hop; the proxy appended the real address
    request = _request("10.0.0.1", forwarded_for="1.2.3.4, 203.0.113.7")

    with _with_trusted_proxies("10.0.0.1"):
        assert get_client_ip(request) == "203.0.113.7"


def test_get_client_ip_skips_chained_trusted_proxies():
    request = _request("10.0.0.1", forwarded_for="203.0.113.7, 10.0.0.2")

    with _with_trusted_proxies("10.0.0.1, 10.0.0.2"):
        assert get_client_ip(request) == "203.0.113.7"


def test_get_client_ip_trusted_proxy_without_header_uses_peer():
    with _with_trusted_proxies("10.0.0.1"):
        assert get_client_ip(_request("10.0.0.1")) == "10.0.0.1"
