"""
Perplexity (Sonar) adapter.

Perplexity requires strictly alternating roles, so structured data rides on
the user prompt instead of a second user message. Search controls arrive as
passthrough keys in the params bag.

Pricing: https://docs.perplexity.ai/guides/pricing
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from llm_relay.models import (
    CanonicalRequest,
    ModelDescriptor,
    ReasoningTokenPricing,
    text_model,
)
from llm_relay.pricing import reasoning_token_cost
from llm_relay.provider.chat_completions import ChatCompletionsAdapter, usage_of

_SEARCH_REQUEST_FEE = 0.005

MODELS = (
    text_model("sonar", ReasoningTokenPricing(1.00, 1.00, per_request_flat=_SEARCH_REQUEST_FEE)),
    text_model("sonar-pro", ReasoningTokenPricing(3.00, 15.00, per_request_flat=_SEARCH_REQUEST_FEE)),
    text_model(
        "sonar-deep-research",
        ReasoningTokenPricing(
            2.00, 8.00, reasoning_per_unit=3.00, per_request_flat=_SEARCH_REQUEST_FEE
        ),
    ),
    text_model("sonar-reasoning", ReasoningTokenPricing(1.00, 5.00, per_request_flat=_SEARCH_REQUEST_FEE)),
    text_model(
        "sonar-reasoning-pro",
        ReasoningTokenPricing(2.00, 8.00, per_request_flat=_SEARCH_REQUEST_FEE),
    ),
    # Offline model, no search fee.
    text_model("r1-1776", ReasoningTokenPricing(2.00, 8.00)),
)

_PASSTHROUGH_KEYS = (
    "search_domain_filter",
    "search_recency_filter",
    "return_related_questions",
)


class PerplexityAdapter(ChatCompletionsAdapter):
    provider_id = "perplexity"
    models = MODELS
    supports_logit_bias = False
    supports_seed = False
    supports_response_format = False

    def build_messages(
        self, model: ModelDescriptor, req: CanonicalRequest, data: Optional[str]
    ) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        if req.system:
            messages.append({"role": "system", "content": req.system})
        prompt = req.prompt if data is None else f"{req.prompt}: \n\n{data}"
        messages.append({"role": "user", "content": prompt})
        return messages

    def extra_body_fields(
        self, model: ModelDescriptor, req: CanonicalRequest
    ) -> Dict[str, Any]:
        params = req.params
        fields: Dict[str, Any] = {}
        context_size = params.passthrough("search_context_size")
        if context_size:
            fields["web_search_options"] = {"search_context_size": context_size}
        for key in _PASSTHROUGH_KEYS:
            value = params.passthrough(key)
            if value is not None:
                fields[key] = value
        return fields

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        usage = usage_of(full_response)
        return reasoning_token_cost(
            model.pricing,
            model.token_divisor,
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
            reasoning_tokens=usage.get("reasoning_tokens") or 0,
        )
