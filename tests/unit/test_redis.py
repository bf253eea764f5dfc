"""Tests for the shared Redis connection."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError

from meeka.infra.redis import RedisClient, check_redis_health, get_redis, key


@pytest.fixture(autouse=True)
def reset_client():
    RedisClient._client = None
    RedisClient._retry_at = 0.0
    yield
    RedisClient._client = None
    RedisClient._retry_at = 0.0


def _mock_client(ping_error=None):
    client = MagicMock()
    client.ping = AsyncMock(side_effect=ping_error)
    client.aclose = AsyncMock()
    return client


def test_key():
    assert key("dialogue", "session", "c1") == "meeka:v1:dialogue:session:c1"


class TestRedisClient:
    """Test connecting, reconnect cooldown and closing."""

    @pytest.mark.asyncio
    async def test_connects_once(self):
        client = _mock_client()

        with patch("meeka.infra.redis.redis.from_url", return_value=client) as from_url:
            assert await get_redis() is client
            assert await get_redis() is client

        from_url.assert_called_once()

    @pytest.mark.asyncio
    async def test_unreachable_waits_before_reconnecting(self):
        client = _mock_client(ConnectionError("refused"))

        with patch("meeka.infra.redis.redis.from_url", return_value=client) as from_url:
            assert await get_redis() is None
            assert await get_redis() is None
            assert from_url.call_count == 1
            client.aclose.assert_awaited_once()

            # Cooldown over
            RedisClient._retry_at = 0.0
            assert await get_redis() is None
            assert from_url.call_count == 2

    @pytest.mark.asyncio
    async def test_close(self):
        client = _mock_client()

        with patch("meeka.infra.redis.redis.from_url", return_value=client):
            await get_redis()
            await RedisClient.close()

        client.aclose.assert_awaited_once()
        assert RedisClient._client is None

    @pytest.mark.asyncio
    async def test_close_without_client(self):
        await RedisClient.close()


class TestHealth:
    """Test the readiness ping."""

    @pytest.mark.asyncio
    async def test_healthy(self):
        with patch("meeka.infra.redis.redis.from_url", return_value=_mock_client()):
            assert await check_redis_health()

    @pytest.mark.asyncio
    async def test_unavailable(self):
        client = _mock_client(ConnectionError("refused"))

        with patch("meeka.infra.redis.redis.from_url", return_value=client):
            assert not await check_redis_health()
