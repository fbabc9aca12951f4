"""
Shared Redis client.

``redis.asyncio`` connections are bound to the event loop that created them,
so one client is kept per running loop (tests and the server may run
different loops in the same process).
"""

from __future__ import annotations

import asyncio
from weakref import WeakKeyDictionary

from redis.asyncio import Redis

from .settings import settings

_redis_clients_by_loop: WeakKeyDictionary[asyncio.AbstractEventLoop, Redis] = (
    WeakKeyDictionary()
)


def _ensure_event_loop() -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError as exc:
        raise RuntimeError(
            "get_redis_client() must be called from inside a running event loop"
        ) from exc


def _create_client() -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True)


def get_redis_client() -> Redis:
    """
    Return a Redis client bound to the current event loop.
    """
    loop = _ensure_event_loop()
    client = _redis_clients_by_loop.get(loop)
    if client is None:
        client = _create_client()
        _redis_clients_by_loop[loop] = client
    return client


async def close_redis_client() -> None:
    loop = _ensure_event_loop()
    client = _redis_clients_by_loop.pop(loop, None)
    if client is not None:
        await client.aclose()


__all__ = ["close_redis_client", "get_redis_client"]
