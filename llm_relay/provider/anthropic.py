"""
Anthropic Messages API adapter.

The system prompt travels in the top-level ``system`` field and ``messages``
holds user turns only. Auth uses ``X-Api-Key`` plus the ``anthropic-version``
header supplied by the provider config. Anthropic has no image generation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from llm_relay.models import (
    CanonicalRequest,
    CanonicalResponse,
    FlatTokenPricing,
    ModelDescriptor,
    text_model,
)
from llm_relay.pricing import flat_token_cost
from llm_relay.provider.base import ProviderAdapter, dig, drop_none


def _claude(
    model_id: str,
    input_price: float,
    output_price: float,
    *,
    max_output_tokens: int,
) -> ModelDescriptor:
    return text_model(
        model_id,
        FlatTokenPricing(
            input_price,
            output_price,
            cached_input_per_unit=round(input_price * 0.1, 6),
            cache_write_per_unit=round(input_price * 1.25, 6),
        ),
        max_output_tokens=max_output_tokens,
    )


MODELS = (
    _claude("claude-opus-4-0", 15.00, 75.00, max_output_tokens=32000),
    _claude("claude-sonnet-4-0", 3.00, 15.00, max_output_tokens=64000),
    _claude("claude-3-7-sonnet-latest", 3.00, 15.00, max_output_tokens=64000),
    _claude("claude-3-5-sonnet-latest", 3.00, 15.00, max_output_tokens=8192),
    _claude("claude-3-5-haiku-latest", 0.80, 4.00, max_output_tokens=8192),
    _claude("claude-3-opus-latest", 15.00, 75.00, max_output_tokens=4096),
    _claude("claude-3-haiku-20240307", 0.25, 1.25, max_output_tokens=4096),
)


class AnthropicAdapter(ProviderAdapter):
    provider_id = "anthropic"
    models = MODELS
    text_path = "messages"

    def auth_headers(self) -> Dict[str, str]:
        return {"X-Api-Key": self.config.api_key or ""}

    def build_text_body(
        self, model: ModelDescriptor, req: CanonicalRequest, data: Optional[str]
    ) -> Dict[str, Any]:
        params = req.params
        content: List[Dict[str, Any]] = [{"type": "text", "text": req.prompt}]
        if data is not None:
            content.append({"type": "text", "text": data})
        return drop_none(
            {
                "model": model.id,
                "system": req.system or None,
                "messages": [{"role": "user", "content": content}],
                "max_tokens": self.resolve_max_tokens(model, params),
                "temperature": params.temperature,
                "top_p": params.top_p,
                "top_k": params.top_k,
                "stop_sequences": params.stop_sequences,
                "stream": params.stream,
            }
        )

    def parse_text_response(self, payload: Any, status: int) -> CanonicalResponse:
        texts = [
            block.get("text", "")
            for block in (dig(payload, "content") or [])
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        usage = dig(payload, "usage") or {}
        total: Optional[int] = None
        if "input_tokens" in usage or "output_tokens" in usage:
            total = int(usage.get("input_tokens") or 0) + int(
                usage.get("output_tokens") or 0
            )
        return CanonicalResponse(
            content="".join(texts) if texts else None,
            total_tokens=total,
            full_response=payload,
            status=status,
        )

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        # ``input_tokens`` already excludes cache reads and cache writes.
        usage = dig(full_response, "usage") or {}
        return flat_token_cost(
            model.pricing,
            model.token_divisor,
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
            cached_input_tokens=usage.get("cache_read_input_tokens") or 0,
            cache_write_tokens=usage.get("cache_creation_input_tokens") or 0,
        )
