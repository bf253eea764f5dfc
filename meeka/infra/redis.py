"""
Redis connection for dialogue session storage.

Callers get None while Redis is unreachable and keep sessions in process
memory instead. After a failed connect, reconnects are attempted at most once
per `redis_retry_interval` seconds so a down Redis does not stall every turn.
"""

import logging
import time
from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError

from meeka.config import settings

logger = logging.getLogger(__name__)

# Namespace for every key this service writes
APP_PREFIX = "meeka:v1:"


def key(*parts: str) -> str:
    """Namespaced key, e.g. key("dialogue", "session", "c1") -> "meeka:v1:dialogue:session:c1"."""
    return APP_PREFIX + ":".join(parts)


class RedisClient:
    """Process-wide Redis connection with a reconnect cooldown."""

    _client: Optional[Redis] = None
    _retry_at: float = 0.0

    @classmethod
    async def get_client(cls) -> Optional[Redis]:
        """
        Get the connected client.

        Returns:
            Redis client, or None while Redis is unavailable
        """
        if cls._client is not None:
            return cls._client

        now = time.monotonic()
        if now < cls._retry_at:
            return None

        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=settings.redis_timeout,
            socket_timeout=settings.redis_timeout,
            retry=Retry(ExponentialBackoff(), retries=2),
        )
        try:
            await client.ping()
        except RedisError as e:
            cls._retry_at = now + settings.redis_retry_interval
            logger.error(
                f"Redis unavailable ({e}), next attempt in {settings.redis_retry_interval:.0f}s"
            )
            await client.aclose()
            return None

        cls._client = client
        logger.info("Connected to Redis")
        return client

    @classmethod
    async def close(cls) -> None:
        """Close the connection and allow an immediate reconnect."""
        client, cls._client = cls._client, None
        cls._retry_at = 0.0
        if client is None:
            return
        try:
            await client.aclose()
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")


async def get_redis() -> Optional[Redis]:
    """Shared client, or None if Redis is unavailable."""
    return await RedisClient.get_client()


async def check_redis_health() -> bool:
    """Ping Redis for the readiness check."""
    client = await get_redis()
    if client is None:
        return False
    try:
        await client.ping()
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return False
    return True
