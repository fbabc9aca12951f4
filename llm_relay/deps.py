from functools import lru_cache
from typing import Dict

import httpx
from fastapi import Depends, FastAPI, Request
from redis.asyncio import Redis

from .logging_config import logger
from .provider.config import ProviderConfig, load_provider_configs
from .provider.registry import build_adapters
from .redis_client import get_redis_client
from .routing.rate_limiter import HourlyRateLimiter, RedisRateCounterStore
from .routing.resolver import ModelResolver
from .services.billing_service import (
    BillingClient,
    HttpBillingClient,
    LoggingBillingClient,
)
from .services.gateway_service import LlmGateway
from .settings import settings


async def get_redis() -> Redis:
    """
    FastAPI dependency that provides the shared Redis client.

    Tests override this dependency with a fake implementation.
    """
    return get_redis_client()


@lru_cache(maxsize=1)
def get_provider_configs() -> Dict[str, ProviderConfig]:
    return load_provider_configs(settings)


async def init_provider_state(app: FastAPI) -> None:
    """
    Build the upstream client, the adapter registry and the model index once.

    Runs during startup so a duplicate model id stops the process instead of
    failing every request.
    """
    client = httpx.AsyncClient(timeout=settings.upstream_timeout)
    try:
        adapters = build_adapters(client, cfg=settings, configs=get_provider_configs())
        resolver = ModelResolver(adapters)
    except Exception:
        await client.aclose()
        raise
    app.state.http_client = client
    app.state.resolver = resolver
    logger.info("Registered %d models across %d providers", len(resolver), len(adapters))


async def close_provider_state(app: FastAPI) -> None:
    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
        app.state.http_client = None


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Upstream client shared for the lifetime of the app."""
    return request.app.state.http_client


def get_resolver(request: Request) -> ModelResolver:
    return request.app.state.resolver


def get_billing_client(
    client: httpx.AsyncClient = Depends(get_http_client),
) -> BillingClient:
    if not settings.billing_url:
        return LoggingBillingClient()
    return HttpBillingClient(
        client,
        settings.billing_url,
        api_key=settings.billing_api_key,
        timeout=settings.billing_timeout,
    )


def get_rate_limiter(redis: Redis = Depends(get_redis)) -> HourlyRateLimiter:
    return HourlyRateLimiter(
        RedisRateCounterStore(redis),
        limit=settings.rate_limit_per_hour,
        window_seconds=settings.rate_limit_window_seconds,
        enabled=settings.rate_limit_enabled,
    )


def get_gateway(
    resolver: ModelResolver = Depends(get_resolver),
    rate_limiter: HourlyRateLimiter = Depends(get_rate_limiter),
    billing: BillingClient = Depends(get_billing_client),
) -> LlmGateway:
    return LlmGateway(
        resolver,
        rate_limiter,
        billing,
        price_per_credit=settings.price_per_credit,
    )


__all__ = [
    "close_provider_state",
    "get_billing_client",
    "get_gateway",
    "get_http_client",
    "get_provider_configs",
    "get_rate_limiter",
    "get_redis",
    "get_resolver",
    "init_provider_state",
]
