"""
OpenAI adapter: chat completions plus DALL-E image generation.

Cost notes:
- ``usage.prompt_tokens`` includes ``prompt_tokens_details.cached_tokens``;
  the cached part is billed at the cached rate and removed from the regular
  input count.
- DALL-E is billed per image by (quality, size).
"""

from __future__ import annotations

from typing import Any, Dict

from llm_relay.models import (
    CanonicalImageRequest,
    CanonicalResponse,
    FlatTokenPricing,
    ModelDescriptor,
    PerImagePricing,
    image_model,
    text_model,
)
from llm_relay.pricing import flat_token_cost, per_image_cost
from llm_relay.provider.base import dig, drop_none, strip_data_uri
from llm_relay.provider.chat_completions import ChatCompletionsAdapter, usage_of

MODELS = (
    text_model(
        "gpt-4o",
        FlatTokenPricing(2.50, 10.00, cached_input_per_unit=1.25),
        max_output_tokens=16384,
    ),
    text_model(
        "gpt-4o-mini",
        FlatTokenPricing(0.15, 0.60, cached_input_per_unit=0.075),
        max_output_tokens=16384,
    ),
    text_model(
        "gpt-4.1",
        FlatTokenPricing(2.00, 8.00, cached_input_per_unit=0.50),
        max_output_tokens=32768,
    ),
    text_model(
        "gpt-4.1-mini",
        FlatTokenPricing(0.40, 1.60, cached_input_per_unit=0.10),
        max_output_tokens=32768,
    ),
    text_model(
        "gpt-4.1-nano",
        FlatTokenPricing(0.10, 0.40, cached_input_per_unit=0.025),
        max_output_tokens=32768,
    ),
    text_model("gpt-4-turbo", FlatTokenPricing(10.00, 30.00), max_output_tokens=4096),
    text_model("gpt-3.5-turbo", FlatTokenPricing(0.50, 1.50), max_output_tokens=4096),
    text_model(
        "o1",
        FlatTokenPricing(15.00, 60.00, cached_input_per_unit=7.50),
        max_output_tokens=100000,
        uses_completion_token_field=True,
    ),
    text_model(
        "o1-mini",
        FlatTokenPricing(1.10, 4.40, cached_input_per_unit=0.55),
        max_output_tokens=65536,
        supports_system_role=False,
        uses_completion_token_field=True,
    ),
    text_model(
        "o3-mini",
        FlatTokenPricing(1.10, 4.40, cached_input_per_unit=0.55),
        max_output_tokens=100000,
        uses_completion_token_field=True,
    ),
    image_model(
        "dall-e-3",
        PerImagePricing(
            {
                "standard": {"1024x1024": 0.04, "1024x1792": 0.08, "1792x1024": 0.08},
                "hd": {"1024x1024": 0.08, "1024x1792": 0.12, "1792x1024": 0.12},
            }
        ),
    ),
    image_model(
        "dall-e-2",
        PerImagePricing(
            {"standard": {"256x256": 0.016, "512x512": 0.018, "1024x1024": 0.02}}
        ),
    ),
)


class OpenAIAdapter(ChatCompletionsAdapter):
    provider_id = "openai"
    models = MODELS
    supports_images = True

    def build_image_body(
        self, model: ModelDescriptor, req: CanonicalImageRequest
    ) -> Dict[str, Any]:
        params = req.params
        prompt = f"{req.system}\n\n{req.prompt}" if req.system else req.prompt
        return drop_none(
            {
                "model": model.id,
                "prompt": prompt,
                "n": params.n,
                "size": params.size,
                "quality": params.quality,
                "style": params.style,
                "user": params.user,
                "response_format": params.response_format or "b64_json",
            }
        )

    def parse_image_response(self, payload: Any, status: int) -> CanonicalResponse:
        first = dig(payload, "data", 0) or {}
        content = first.get("b64_json") or first.get("url")
        return CanonicalResponse(
            content=strip_data_uri(content),
            full_response=payload,
            status=status,
        )

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        pricing = model.pricing
        if isinstance(pricing, PerImagePricing):
            return per_image_cost(
                pricing,
                count=params.get("n"),
                quality=params.get("quality"),
                size=params.get("size"),
            )

        usage = usage_of(full_response)
        prompt_tokens = int(usage.get("prompt_tokens") or 0)
        cached = int(dig(usage, "prompt_tokens_details", "cached_tokens") or 0)
        cached = min(cached, prompt_tokens)
        return flat_token_cost(
            pricing,
            model.token_divisor,
            input_tokens=prompt_tokens - cached,
            output_tokens=usage.get("completion_tokens") or 0,
            cached_input_tokens=cached,
        )
