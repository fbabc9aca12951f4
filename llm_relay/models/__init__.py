from .catalog import (
    FlatPerImagePrice,
    FlatTokenPricing,
    Modality,
    ModelDescriptor,
    PerImagePricing,
    PriceTier,
    PricingSpec,
    ReasoningTokenPricing,
    TieredTokenPricing,
    image_model,
    text_model,
)
from .llm import (
    CanonicalImageRequest,
    CanonicalRequest,
    CanonicalResponse,
    GenerateResponse,
    GenerationParams,
    ImageParams,
    ModelsResponse,
    UsageRecord,
)

__all__ = [
    "CanonicalImageRequest",
    "CanonicalRequest",
    "CanonicalResponse",
    "FlatPerImagePrice",
    "FlatTokenPricing",
    "GenerateResponse",
    "GenerationParams",
    "ImageParams",
    "Modality",
    "ModelDescriptor",
    "ModelsResponse",
    "PerImagePricing",
    "PriceTier",
    "PricingSpec",
    "ReasoningTokenPricing",
    "TieredTokenPricing",
    "UsageRecord",
    "image_model",
    "text_model",
]
