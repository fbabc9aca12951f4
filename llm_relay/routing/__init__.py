from .rate_limiter import HourlyRateLimiter, RedisRateCounterStore
from .resolver import ModelResolver

__all__ = ["HourlyRateLimiter", "ModelResolver", "RedisRateCounterStore"]
