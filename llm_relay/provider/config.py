"""
Provider configuration.

Each vendor adapter receives one ``ProviderConfig`` built from settings:

    LLM_OPENAI_API_KEY=sk-...
    OPENAI_BASE_URL=https://api.openai.com/v1

Providers without an API key are still returned so their catalogs stay
listable; the adapter refuses to call the vendor until a key is configured.
A warning is logged so that a missing secret is visible at startup.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from llm_relay.logging_config import logger
from llm_relay.settings import Settings, settings as default_settings


class ProviderConfig(BaseModel):
    id: str = Field(..., description="Stable provider id used in SKU keys")
    name: str = Field(..., description="Human readable provider name")
    base_url: str = Field(..., description="Vendor API base URL")
    api_key: Optional[str] = Field(default=None, repr=False)
    timeout: float = Field(120.0, gt=0)
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


# (provider id, display name, settings prefix) in registration order.
PROVIDER_SPECS: List[tuple[str, str, str]] = [
    ("openai", "OpenAI", "openai"),
    ("anthropic", "Anthropic", "anthropic"),
    ("gemini", "Gemini", "gemini"),
    ("deepseek", "DeepSeek", "deepseek"),
    ("groq", "Groq", "groq"),
    ("xai", "xAI", "xai"),
    ("perplexity", "Perplexity", "perplexity"),
]


def load_provider_configs(cfg: Settings | None = None) -> Dict[str, ProviderConfig]:
    cfg = cfg or default_settings
    providers: Dict[str, ProviderConfig] = {}
    for provider_id, name, prefix in PROVIDER_SPECS:
        extra_headers: Dict[str, str] = {}
        if provider_id == "anthropic":
            extra_headers["anthropic-version"] = cfg.anthropic_version
        config = ProviderConfig(
            id=provider_id,
            name=name,
            base_url=getattr(cfg, f"{prefix}_base_url"),
            api_key=getattr(cfg, f"{prefix}_api_key") or None,
            timeout=cfg.upstream_timeout,
            extra_headers=extra_headers,
        )
        if not config.is_configured:
            logger.warning(
                "Provider %s has no API key configured; its models are listed "
                "but calls will be rejected",
                provider_id,
            )
        providers[provider_id] = config
    return providers


__all__ = ["PROVIDER_SPECS", "ProviderConfig", "load_provider_configs"]
