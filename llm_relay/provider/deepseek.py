"""DeepSeek adapter (OpenAI-compatible chat completions, text only)."""

from __future__ import annotations

from typing import Any, Dict

from llm_relay.models import FlatTokenPricing, ModelDescriptor, text_model
from llm_relay.pricing import flat_token_cost
from llm_relay.provider.chat_completions import ChatCompletionsAdapter, usage_of

MODELS = (
    text_model(
        "deepseek-chat",
        FlatTokenPricing(0.27, 1.10, cached_input_per_unit=0.07),
        max_output_tokens=8192,
    ),
    text_model(
        "deepseek-reasoner",
        FlatTokenPricing(0.55, 2.19, cached_input_per_unit=0.14),
        max_output_tokens=65536,
    ),
)


class DeepSeekAdapter(ChatCompletionsAdapter):
    provider_id = "deepseek"
    models = MODELS
    supports_top_k = True
    supports_logit_bias = False
    supports_seed = False

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        """
        DeepSeek splits the prompt into cache hits and misses. When the miss
        count is absent it is derived from the prompt total so no token is
        billed twice.
        """
        usage = usage_of(full_response)
        prompt_tokens = int(usage.get("prompt_tokens") or 0)
        hit = int(usage.get("prompt_cache_hit_tokens") or 0)
        miss = usage.get("prompt_cache_miss_tokens")
        if miss is None:
            miss = max(prompt_tokens - hit, 0)
        return flat_token_cost(
            model.pricing,
            model.token_divisor,
            input_tokens=miss,
            output_tokens=usage.get("completion_tokens") or 0,
            cached_input_tokens=hit,
        )
