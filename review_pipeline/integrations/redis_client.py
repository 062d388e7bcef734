"""
Redis connection shared by the rate limiter and the translation cache.

Redis is optional: with no URL configured the holder stays empty and every
consumer degrades (rate limiting fails open, translations are not cached).
"""

import logging
from typing import Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class RedisResource:
    """Owns one `redis.asyncio.Redis` client for the lifetime of the application."""

    def __init__(self, url: Optional[str], socket_timeout: float = 2.0):
        self.url = url
        self.socket_timeout = socket_timeout
        self._client: Optional[Redis] = None

    @property
    def client(self) -> Optional[Redis]:
        return self._client

    def connect(self) -> Optional[Redis]:
        """
        Create the client. No network round trip happens here; the first
        command opens the connection.

        Returns:
            Redis | None: The client, or None when no URL is configured.
        """
        if not self.url:
            logger.warning("REDIS_URL not configured - rate limiting and translation cache are disabled")
            return None
        if self._client is None:
            self._client = Redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )
            logger.info("Redis client initialized")
        return self._client

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client closed")
