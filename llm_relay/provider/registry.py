"""
Adapter registry.

The adapter set is fixed at startup: ``build_adapters`` instantiates one
adapter per vendor, in registration order, and returns a read-only mapping
keyed by provider id.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Type

import httpx

from llm_relay.provider.anthropic import AnthropicAdapter
from llm_relay.provider.base import ProviderAdapter
from llm_relay.provider.config import ProviderConfig, load_provider_configs
from llm_relay.provider.deepseek import DeepSeekAdapter
from llm_relay.provider.gemini import GeminiAdapter
from llm_relay.provider.groq import GroqAdapter
from llm_relay.provider.openai import OpenAIAdapter
from llm_relay.provider.perplexity import PerplexityAdapter
from llm_relay.provider.xai import XAIAdapter
from llm_relay.settings import Settings, settings as default_settings

ADAPTER_CLASSES: tuple[Type[ProviderAdapter], ...] = (
    OpenAIAdapter,
    AnthropicAdapter,
    GeminiAdapter,
    DeepSeekAdapter,
    GroqAdapter,
    XAIAdapter,
    PerplexityAdapter,
)


def build_adapters(
    client: httpx.AsyncClient,
    *,
    cfg: Settings | None = None,
    configs: Dict[str, ProviderConfig] | None = None,
) -> Mapping[str, ProviderAdapter]:
    cfg = cfg or default_settings
    configs = configs if configs is not None else load_provider_configs(cfg)
    adapters: Dict[str, ProviderAdapter] = {}
    for adapter_cls in ADAPTER_CLASSES:
        config = configs[adapter_cls.provider_id]
        adapters[adapter_cls.provider_id] = adapter_cls(
            config, client, default_max_tokens=cfg.default_max_tokens
        )
    return MappingProxyType(adapters)


__all__ = ["ADAPTER_CLASSES", "build_adapters"]
