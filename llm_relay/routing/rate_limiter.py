"""
Per-tenant hourly rate limiting.

Counters live in Redis, one key per tenant and wall-clock UTC hour:

    llm:rate_limit:{tenant_id}:{YYYY-MM-DD}:{HH}

The first increment of a bucket sets its TTL; the gateway never deletes a
bucket itself. Buckets are hour-aligned rather than sliding, so a tenant can
burst up to twice the limit across an hour boundary.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Protocol

from redis.asyncio import Redis

from llm_relay.errors import RateLimitExceeded
from llm_relay.logging_config import logger

RATE_LIMIT_KEY_PREFIX = "llm:rate_limit"


class RateCounterStore(Protocol):
    async def increment_and_get_count(self, key: str) -> int: ...

    async def set_expiry(self, key: str, seconds: int) -> None: ...


class RedisRateCounterStore:
    """Counter store backed by ``INCR`` / ``EXPIRE``."""

    def __init__(self, redis: Redis) -> None:
        self.redis = redis

    async def increment_and_get_count(self, key: str) -> int:
        return int(await self.redis.incr(key))

    async def set_expiry(self, key: str, seconds: int) -> None:
        await self.redis.expire(key, seconds)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def hour_bucket_key(tenant_id: str, now: dt.datetime) -> str:
    if now.tzinfo is not None:
        now = now.astimezone(dt.timezone.utc)
    return f"{RATE_LIMIT_KEY_PREFIX}:{tenant_id}:{now:%Y-%m-%d}:{now:%H}"


class HourlyRateLimiter:
    def __init__(
        self,
        store: RateCounterStore,
        *,
        limit: int,
        window_seconds: int = 3600,
        enabled: bool = True,
        now_fn: Callable[[], dt.datetime] | None = None,
    ) -> None:
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.enabled = enabled
        self._now = now_fn or _utc_now

    async def check(self, tenant_id: str) -> int:
        """
        Count one call for ``tenant_id`` and return the bucket's new count.

        Raises ``RateLimitExceeded`` once the count passes ``limit``; the
        caller must not contact the vendor in that case.
        """
        if not self.enabled:
            return 0

        key = hour_bucket_key(tenant_id, self._now())
        count = await self.store.increment_and_get_count(key)
        if count == 1:
            await self.store.set_expiry(key, self.window_seconds)
        if count > self.limit:
            logger.warning(
                "Rate limit exceeded: tenant=%s count=%s limit=%s",
                tenant_id,
                count,
                self.limit,
            )
            raise RateLimitExceeded(tenant_id, self.limit, count)
        return count


__all__ = [
    "HourlyRateLimiter",
    "RATE_LIMIT_KEY_PREFIX",
    "RateCounterStore",
    "RedisRateCounterStore",
    "hour_bucket_key",
]
