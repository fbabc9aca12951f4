"""
Google Gemini (Generative Language API) adapter.

Gemini authenticates with a ``key`` query parameter, has no system role (the
system prompt becomes its own leading user turn) and prices text by volume
tiers. Imagen models generate images through ``:predict``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from llm_relay.models import (
    CanonicalImageRequest,
    CanonicalRequest,
    CanonicalResponse,
    FlatPerImagePrice,
    ModelDescriptor,
    PriceTier,
    TieredTokenPricing,
    image_model,
    text_model,
)
from llm_relay.pricing import per_image_cost, tiered_token_cost
from llm_relay.provider.base import ProviderAdapter, dig, drop_none


def _two_tier(
    boundary: int,
    prompt: tuple[float, float],
    candidates: tuple[float, float],
    cache: tuple[float, float],
) -> TieredTokenPricing:
    def tiers(prices: tuple[float, float]) -> tuple[PriceTier, ...]:
        return (PriceTier(boundary, prices[0]), PriceTier(None, prices[1]))

    return TieredTokenPricing(
        prompt_tiers=tiers(prompt),
        candidate_tiers=tiers(candidates),
        cache_tiers=tiers(cache),
    )


def _single_tier(prompt: float, candidates: float, cache: float) -> TieredTokenPricing:
    return TieredTokenPricing(
        prompt_tiers=(PriceTier(None, prompt),),
        candidate_tiers=(PriceTier(None, candidates),),
        cache_tiers=(PriceTier(None, cache),),
    )


MODELS = (
    text_model(
        "gemini-2.5-pro",
        _two_tier(200_000, (1.25, 2.50), (10.00, 15.00), (0.31, 0.625)),
        max_output_tokens=65536,
    ),
    text_model(
        "gemini-2.5-flash",
        _single_tier(0.30, 2.50, 0.075),
        max_output_tokens=65536,
    ),
    text_model(
        "gemini-2.0-flash",
        _single_tier(0.10, 0.40, 0.025),
        max_output_tokens=8192,
    ),
    text_model(
        "gemini-2.0-flash-lite",
        _single_tier(0.075, 0.30, 0.01875),
        max_output_tokens=8192,
    ),
    text_model(
        "gemini-1.5-pro",
        _two_tier(128_000, (1.25, 2.50), (5.00, 10.00), (0.3125, 0.625)),
        max_output_tokens=8192,
    ),
    text_model(
        "gemini-1.5-flash",
        _two_tier(128_000, (0.075, 0.15), (0.30, 0.60), (0.01875, 0.0375)),
        max_output_tokens=8192,
    ),
    image_model("imagen-3.0-generate-002", FlatPerImagePrice(0.03)),
)

_MIME_TYPES = {
    "json": "application/json",
    "text": "text/plain",
    "xml": "text/plain",
}


class GeminiAdapter(ProviderAdapter):
    provider_id = "gemini"
    models = MODELS
    supports_images = True

    def auth_headers(self) -> Dict[str, str]:
        return {}

    def auth_params(self) -> Dict[str, str]:
        return {"key": self.config.api_key or ""}

    def text_path_for(self, model: ModelDescriptor) -> str:
        return f"models/{model.id}:generateContent"

    def image_path_for(self, model: ModelDescriptor) -> str:
        return f"models/{model.id}:predict"

    def build_text_body(
        self, model: ModelDescriptor, req: CanonicalRequest, data: Optional[str]
    ) -> Dict[str, Any]:
        params = req.params
        contents: List[Dict[str, Any]] = []
        if req.system:
            contents.append(
                {"role": "user", "parts": [{"text": f"System prompt: {req.system}"}]}
            )
        parts: List[Dict[str, Any]] = [{"text": req.prompt}]
        if data is not None:
            parts.append({"text": data})
        contents.append({"role": "user", "parts": parts})

        generation_config = drop_none(
            {
                "maxOutputTokens": self.resolve_max_tokens(model, params),
                "temperature": params.temperature,
                "topP": params.top_p,
                "topK": params.top_k,
                "stopSequences": params.stop_sequences,
                "candidateCount": params.candidate_count,
                "frequencyPenalty": params.frequency_penalty,
                "presencePenalty": params.presence_penalty,
                "seed": params.seed,
                "responseMimeType": _MIME_TYPES.get(params.response_format or ""),
            }
        )
        return {"contents": contents, "generationConfig": generation_config}

    def parse_text_response(self, payload: Any, status: int) -> CanonicalResponse:
        return CanonicalResponse(
            content=dig(payload, "candidates", 0, "content", "parts", 0, "text"),
            total_tokens=dig(payload, "usageMetadata", "totalTokenCount"),
            full_response=payload,
            status=status,
        )

    def build_image_body(
        self, model: ModelDescriptor, req: CanonicalImageRequest
    ) -> Dict[str, Any]:
        params = req.params
        prompt = f"{req.system}\n\n{req.prompt}" if req.system else req.prompt
        return {
            "instances": [{"prompt": prompt}],
            "parameters": drop_none({"sampleCount": params.n or 1}),
        }

    def parse_image_response(self, payload: Any, status: int) -> CanonicalResponse:
        return CanonicalResponse(
            content=dig(payload, "predictions", 0, "bytesBase64Encoded"),
            full_response=payload,
            status=status,
        )

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        pricing = model.pricing
        if isinstance(pricing, FlatPerImagePrice):
            return per_image_cost(pricing, count=params.get("n"))

        usage = dig(full_response, "usageMetadata") or {}
        # Thinking tokens are billed as output.
        candidates = int(usage.get("candidatesTokenCount") or 0) + int(
            usage.get("thoughtsTokenCount") or 0
        )
        return tiered_token_cost(
            pricing,
            model.token_divisor,
            prompt_tokens=usage.get("promptTokenCount") or 0,
            candidate_tokens=candidates,
            cached_tokens=usage.get("cachedContentTokenCount") or 0,
        )
