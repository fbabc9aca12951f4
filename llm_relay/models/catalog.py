"""
Static model catalog types.

Descriptors and pricing specs are plain frozen dataclasses: they are built once
at import time by each provider module and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple, Union


class Modality(str, Enum):
    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class FlatTokenPricing:
    input_per_unit: float
    output_per_unit: float
    cached_input_per_unit: Optional[float] = None
    cache_write_per_unit: Optional[float] = None
    image_input_per_unit: Optional[float] = None


@dataclass(frozen=True)
class PriceTier:
    # None marks the unbounded tier.
    max_tokens: Optional[int]
    price: float


@dataclass(frozen=True)
class TieredTokenPricing:
    prompt_tiers: Tuple[PriceTier, ...]
    candidate_tiers: Tuple[PriceTier, ...]
    cache_tiers: Tuple[PriceTier, ...] = ()


@dataclass(frozen=True)
class PerImagePricing:
    # quality -> size -> USD per image
    by_quality_and_size: Mapping[str, Mapping[str, float]]


@dataclass(frozen=True)
class FlatPerImagePrice:
    price: float


@dataclass(frozen=True)
class ReasoningTokenPricing:
    input_per_unit: float
    output_per_unit: float
    reasoning_per_unit: Optional[float] = None
    per_request_flat: Optional[float] = None


PricingSpec = Union[
    FlatTokenPricing,
    TieredTokenPricing,
    PerImagePricing,
    FlatPerImagePrice,
    ReasoningTokenPricing,
]


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    modalities: frozenset[Modality]
    pricing: PricingSpec
    token_divisor: float = 1_000_000
    max_output_tokens: Optional[int] = None
    supports_system_role: bool = True
    uses_completion_token_field: bool = False

    def supports(self, modality: Modality) -> bool:
        return modality in self.modalities


def text_model(id: str, pricing: PricingSpec, **kwargs) -> ModelDescriptor:
    return ModelDescriptor(
        id=id, modalities=frozenset({Modality.TEXT}), pricing=pricing, **kwargs
    )


def image_model(id: str, pricing: PricingSpec, **kwargs) -> ModelDescriptor:
    kwargs.setdefault("token_divisor", 1)
    return ModelDescriptor(
        id=id, modalities=frozenset({Modality.IMAGE}), pricing=pricing, **kwargs
    )


__all__ = [
    "FlatPerImagePrice",
    "FlatTokenPricing",
    "Modality",
    "ModelDescriptor",
    "PerImagePricing",
    "PriceTier",
    "PricingSpec",
    "ReasoningTokenPricing",
    "TieredTokenPricing",
    "image_model",
    "text_model",
]
