"""
Pricing evaluation, one function per pricing shape.

All functions are pure: they take already-extracted token counts (never the
raw vendor payload) so each provider's cost calculator only has to pull its
own usage fields and hand them over here.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from .models.catalog import (
    FlatPerImagePrice,
    FlatTokenPricing,
    PerImagePricing,
    PriceTier,
    ReasoningTokenPricing,
    TieredTokenPricing,
)

DEFAULT_IMAGE_QUALITY = "standard"
DEFAULT_IMAGE_SIZE = "1024x1024"

# Millicredits are rounded to this many decimals before ceil() so float noise
# such as 10000.000000000002 does not bill an extra unit.
_MILLICREDIT_PRECISION = 6


class PricingLookupError(LookupError):
    """No price exists for the requested tier / quality / size."""


def _non_negative(value: Any) -> int:
    try:
        count = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def flat_token_cost(
    pricing: FlatTokenPricing,
    divisor: float,
    *,
    input_tokens: int,
    output_tokens: int,
    cached_input_tokens: int = 0,
    cache_write_tokens: int = 0,
    image_input_tokens: int = 0,
) -> float:
    """
    ``input_tokens`` must already exclude cached and cache-write tokens so that
    every token is billed at exactly one rate.

    Cached tokens fall back to the input rate when the model has no discount,
    and image input tokens are only billed when the model prices them.
    """
    input_tokens = _non_negative(input_tokens)
    output_tokens = _non_negative(output_tokens)
    cached_input_tokens = _non_negative(cached_input_tokens)
    cache_write_tokens = _non_negative(cache_write_tokens)
    image_input_tokens = _non_negative(image_input_tokens)

    cached_rate = (
        pricing.cached_input_per_unit
        if pricing.cached_input_per_unit is not None
        else pricing.input_per_unit
    )
    write_rate = (
        pricing.cache_write_per_unit
        if pricing.cache_write_per_unit is not None
        else pricing.input_per_unit
    )

    cost = input_tokens * (pricing.input_per_unit / divisor)
    cost += cached_input_tokens * (cached_rate / divisor)
    cost += cache_write_tokens * (write_rate / divisor)
    cost += output_tokens * (pricing.output_per_unit / divisor)
    if image_input_tokens > 0 and pricing.image_input_per_unit is not None:
        cost += image_input_tokens * (pricing.image_input_per_unit / divisor)
    return cost


def select_tier(tiers: Sequence[PriceTier], token_count: int) -> PriceTier:
    """
    Pick the tier with the smallest ``max_tokens`` bound that still covers
    ``token_count``; when no bound covers it, use the unbounded (or last) tier.
    """
    if not tiers:
        raise PricingLookupError("empty tier list")
    bounded = sorted(
        (t for t in tiers if t.max_tokens is not None),
        key=lambda t: t.max_tokens,  # type: ignore[arg-type, return-value]
    )
    for tier in bounded:
        if token_count <= tier.max_tokens:  # type: ignore[operator]
            return tier
    for tier in tiers:
        if tier.max_tokens is None:
            return tier
    return tiers[-1]


def tiered_token_cost(
    pricing: TieredTokenPricing,
    divisor: float,
    *,
    prompt_tokens: int,
    candidate_tokens: int,
    cached_tokens: int = 0,
) -> float:
    """
    Each category selects its tier from its own observed count.

    ``prompt_tokens`` is the total prompt size reported by the vendor (it decides
    the prompt tier); the cached part of it is billed at the cache tier instead.
    """
    prompt_tokens = _non_negative(prompt_tokens)
    candidate_tokens = _non_negative(candidate_tokens)
    cached_tokens = min(_non_negative(cached_tokens), prompt_tokens)

    prompt_tier = select_tier(pricing.prompt_tiers, prompt_tokens)
    candidate_tier = select_tier(pricing.candidate_tiers, candidate_tokens)

    cost = (prompt_tokens - cached_tokens) * (prompt_tier.price / divisor)
    cost += candidate_tokens * (candidate_tier.price / divisor)
    if cached_tokens:
        if pricing.cache_tiers:
            cache_price = select_tier(pricing.cache_tiers, cached_tokens).price
        else:
            cache_price = prompt_tier.price
        cost += cached_tokens * (cache_price / divisor)
    return cost


def per_image_cost(
    pricing: PerImagePricing | FlatPerImagePrice,
    *,
    count: Optional[int] = None,
    quality: Optional[str] = None,
    size: Optional[str] = None,
) -> float:
    images = count if count and count > 0 else 1
    if isinstance(pricing, FlatPerImagePrice):
        return images * pricing.price

    quality = quality or DEFAULT_IMAGE_QUALITY
    size = size or DEFAULT_IMAGE_SIZE
    by_size = pricing.by_quality_and_size.get(quality)
    if by_size is None:
        raise PricingLookupError(f"no price for quality {quality!r}")
    unit_price = by_size.get(size)
    if unit_price is None:
        raise PricingLookupError(f"no price for quality {quality!r} and size {size!r}")
    return images * unit_price


def reasoning_token_cost(
    pricing: ReasoningTokenPricing,
    divisor: float,
    *,
    input_tokens: int,
    output_tokens: int,
    reasoning_tokens: int = 0,
) -> float:
    reasoning_tokens = _non_negative(reasoning_tokens)
    cost = _non_negative(input_tokens) * (pricing.input_per_unit / divisor)
    cost += _non_negative(output_tokens) * (pricing.output_per_unit / divisor)
    if pricing.reasoning_per_unit and reasoning_tokens > 0:
        cost += reasoning_tokens * (pricing.reasoning_per_unit / divisor)
    if pricing.per_request_flat:
        cost += pricing.per_request_flat
    return cost


def calculate_millicredits(cost: float, price_per_credit: float | str) -> int:
    """
    Convert a USD cost into billing units (1 credit = 1000 millicredits).

    Zero cost and a zero price both yield 0; any positive cost bills at
    least one millicredit.
    """
    cost = float(cost)
    price = float(price_per_credit)
    if cost <= 0 or price <= 0:
        return 0
    millicredits = cost / price * 1000
    return math.ceil(round(millicredits, _MILLICREDIT_PRECISION))


__all__ = [
    "DEFAULT_IMAGE_QUALITY",
    "DEFAULT_IMAGE_SIZE",
    "PricingLookupError",
    "calculate_millicredits",
    "flat_token_cost",
    "per_image_cost",
    "reasoning_token_cost",
    "select_tier",
    "tiered_token_cost",
]
