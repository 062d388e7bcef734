"""
Fixed-window rate limiter backed by Redis.

Each key gets an `INCR` counter whose expiry is set on the first hit of the
window. The limiter fails open: without Redis, or when Redis errors or is
slow, the request is admitted.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from redis.asyncio import Redis

from review_pipeline.config.settings import settings
from review_pipeline.models.dtos import RateLimitResult
from review_pipeline.monitoring.metrics import record_fail_open, record_rate_limit

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:"


@dataclass(frozen=True)
class RatePolicy:
    limit: int
    window_seconds: int


COMMENT_POLICY = RatePolicy(limit=3, window_seconds=60)
REPORT_POLICY = RatePolicy(limit=5, window_seconds=300)
LIKE_POLICY = RatePolicy(limit=5, window_seconds=60)
VIEW_POLICY = RatePolicy(limit=1, window_seconds=60)


class RateLimiter:
    """
    Admission control over Redis counters.
    """

    def __init__(
        self,
        redis: Optional[Redis] = None,
        timeout_seconds: Optional[float] = None,
        enabled: Optional[bool] = None,
    ):
        """
        Args:
            redis: Async Redis client. None disables limiting (every call is admitted).
            timeout_seconds: Upper bound for each Redis command.
            enabled: Master switch, defaults to `RATE_LIMIT_ENABLED`.
        """
        self.redis = redis
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.RATE_LIMIT_TIMEOUT_SECONDS
        self.enabled = settings.RATE_LIMIT_ENABLED if enabled is None else enabled

    async def _call(self, awaitable):
        return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)

    async def admit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """
        Count one request against `key` and decide whether it is admitted.

        Args:
            key: Identity of the limited action, e.g. "comment:203.0.113.9".
            limit: Requests allowed per window.
            window_seconds: Window length.

        Returns:
            RateLimitResult: allowed, remaining budget, seconds until the window resets.
        """
        fail_open = RateLimitResult(allowed=True, remaining=limit, reset_in_seconds=0)
        if not self.enabled:
            return fail_open
        if self.redis is None:
            record_fail_open("unconfigured")
            return fail_open

        full_key = f"{RATE_LIMIT_PREFIX}{key}"
        try:
            current = int(await self._call(self.redis.incr(full_key)))
            if current == 1:
                await self._call(self.redis.expire(full_key, window_seconds))
            ttl = int(await self._call(self.redis.ttl(full_key)))
        except asyncio.TimeoutError:
            logger.warning(f"Rate limit check timed out for key={key}, allowing request")
            record_fail_open("timeout")
            return fail_open
        except Exception as e:
            logger.error(f"Rate limit store error for key={key}, allowing request: {e}")
            record_fail_open("error")
            return fail_open

        allowed = current <= limit
        result = RateLimitResult(
            allowed=allowed,
            remaining=max(0, limit - current),
            reset_in_seconds=ttl if ttl > 0 else window_seconds,
        )
        if not allowed:
            logger.info(f"Rate limit blocked: key={key}, current={current}, limit={limit}")
        record_rate_limit(key, allowed)
        return result

    async def admit_policy(self, key: str, policy: RatePolicy) -> RateLimitResult:
        return await self.admit(key, policy.limit, policy.window_seconds)
