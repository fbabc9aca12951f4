"""
Groq adapter. Text only, flat per-token pricing, and Groq takes
``max_completion_tokens`` for every model.

Pricing: https://groq.com/pricing/
"""

from __future__ import annotations

from typing import Any, Dict

from llm_relay.models import FlatTokenPricing, ModelDescriptor, text_model
from llm_relay.pricing import flat_token_cost
from llm_relay.provider.chat_completions import ChatCompletionsAdapter, usage_of

_PRICES = (
    ("llama-4-scout", 1.00, 1.50),
    ("llama-4-maverick", 1.50, 2.00),
    ("llama-3.1-405b", 3.00, 3.00),
    ("llama-3.1-70b", 0.59, 0.79),
    ("llama-3.1-8b", 0.05, 0.08),
    ("kimi-k2", 1.00, 1.50),
    ("deepseek-r1-distill-llama-70b", 0.75, 0.99),
    ("deepseek-r1-distill-qwen-32b", 0.69, 0.69),
    ("gemma2-9b-it", 0.20, 0.20),
    ("llama-3.1-8b-instant", 0.05, 0.08),
    ("llama-3.2-1b-preview", 0.04, 0.04),
    ("llama-3.2-3b-preview", 0.06, 0.06),
    ("llama-3.3-70b-specdec", 0.59, 0.99),
    ("llama-3.3-70b-versatile", 0.59, 0.79),
    ("llama3-70b-8192", 0.59, 0.79),
    ("llama3-8b-8192", 0.05, 0.08),
    ("mistral-saba-24b", 0.79, 0.79),
    ("qwen-2.5-32b", 0.79, 0.79),
    ("qwen-2.5-coder-32b", 0.79, 0.79),
    ("qwen-qwq-32b", 0.29, 0.39),
)

MODELS = tuple(
    text_model(
        model_id,
        FlatTokenPricing(input_price, output_price),
        uses_completion_token_field=True,
    )
    for model_id, input_price, output_price in _PRICES
)


class GroqAdapter(ChatCompletionsAdapter):
    provider_id = "groq"
    models = MODELS
    supports_logit_bias = False

    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        usage = usage_of(full_response)
        return flat_token_cost(
            model.pricing,
            model.token_divisor,
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
        )
