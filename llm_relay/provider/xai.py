"""
xAI (Grok) adapter.

Pricing: https://docs.x.ai/docs/models
"""

from __future__ import annotations

from typing import Any, Dict

from llm_relay.models import (
    CanonicalImageRequest,
    CanonicalResponse,
    FlatPerImagePrice,
    FlatTokenPricing,
    ModelDescriptor,
    image_model,
    text_model,
)
from llm_relay.pricing import flat_token_cost, per_image_cost
from llm_relay.provider.base import dig, strip_data_uri
from llm_relay.provider.chat_completions import ChatCompletionsAdapter, usage_of

MODELS = (
    text_model("grok-4", FlatTokenPricing(5.00, 15.00)),
    text_model("grok-3", FlatTokenPricing(3.00, 12.00)),
    text_model("grok-3-mini", FlatTokenPricing(1.00, 5.00)),
    text_model("grok-2", FlatTokenPricing(2.00, 10.00)),
    text_model("grok-2-vision", FlatTokenPricing(2.00, 10.00, image_input_per_unit=2.00)),
    text_model("grok-vision-beta", FlatTokenPricing(5.00, 15.00, image_input_per_unit=5.00)),
    text_model("grok-beta", FlatTokenPricing(5.00, 15.00)),
    image_model("grok-2-image", FlatPerImagePrice(0.07)),
)


class XAIAdapter(ChatCompletionsAdapter):
    provider_id = "xai"
    models = MODELS
    supports_images = True
    supports_logit_bias = False

    def build_image_body(
        self, model: ModelDescriptor, req: CanonicalImageRequest
    ) -> Dict[str, Any]:
        params = req.params
        return {
            "model": model.id,
            "prompt": req.prompt,
            "n": params.n or 1,
            "response_format": params.response_format or "b64_json",
        }

    def parse_image_response(self, payload: Any, status: int) -> CanonicalResponse:
        first = dig(payload, "data", 0) or {}
        return CanonicalResponse(
            content=strip_data_uri(first.get("b64_json") or first.get("url")),
            full_response=payload,
            status=status,
        )

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        if isinstance(model.pricing, FlatPerImagePrice):
            return per_image_cost(model.pricing, count=params.get("n"))
        usage = usage_of(full_response)
        return flat_token_cost(
            model.pricing,
            model.token_divisor,
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
            image_input_tokens=usage.get("image_tokens") or 0,
        )
