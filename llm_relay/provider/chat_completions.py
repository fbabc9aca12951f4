"""
Shared request/response handling for vendors that speak the OpenAI
``/chat/completions`` dialect (OpenAI, DeepSeek, Groq, xAI, Perplexity).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from llm_relay.models import CanonicalRequest, CanonicalResponse, ModelDescriptor
from llm_relay.provider.base import ProviderAdapter, dig, drop_none

_RESPONSE_FORMATS = {
    "json": {"type": "json_object"},
    "text": {"type": "text"},
}


class ChatCompletionsAdapter(ProviderAdapter):
    text_path = "chat/completions"

    # Vendors that reject ``top_k`` / ``logit_bias`` etc. switch these off.
    supports_top_k = False
    supports_penalties = True
    supports_logit_bias = True
    supports_seed = True
    supports_response_format = True

    def build_messages(
        self, model: ModelDescriptor, req: CanonicalRequest, data: Optional[str]
    ) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = []
        prompt = req.prompt
        if req.system:
            if model.supports_system_role:
                messages.append({"role": "system", "content": req.system})
            else:
                prompt = f"{req.system}\n\n{prompt}"
        messages.append({"role": "user", "content": prompt})
        if data is not None:
            messages.append({"role": "user", "content": data})
        return messages

    def build_text_body(
        self, model: ModelDescriptor, req: CanonicalRequest, data: Optional[str]
    ) -> Dict[str, Any]:
        params = req.params
        token_field = (
            "max_completion_tokens" if model.uses_completion_token_field else "max_tokens"
        )
        body: Dict[str, Any] = {
            "model": model.id,
            "messages": self.build_messages(model, req, data),
            token_field: self.resolve_max_tokens(model, params),
            "temperature": params.temperature,
            "top_p": params.top_p,
            "stop": params.stop_sequences,
            "n": params.candidate_count,
            "stream": params.stream,
        }
        if self.supports_top_k:
            body["top_k"] = params.top_k
        if self.supports_penalties:
            body["frequency_penalty"] = params.frequency_penalty
            body["presence_penalty"] = params.presence_penalty
        if self.supports_logit_bias:
            body["logit_bias"] = params.logit_bias
        if self.supports_seed:
            body["seed"] = params.seed
        if self.supports_response_format and params.response_format:
            body["response_format"] = _RESPONSE_FORMATS.get(
                params.response_format, _RESPONSE_FORMATS["text"]
            )
        body.update(self.extra_body_fields(model, req))
        return drop_none(body)

    def extra_body_fields(
        self, model: ModelDescriptor, req: CanonicalRequest
    ) -> Dict[str, Any]:
        return {}

    def parse_text_response(self, payload: Any, status: int) -> CanonicalResponse:
        return CanonicalResponse(
            content=dig(payload, "choices", 0, "message", "content"),
            total_tokens=dig(payload, "usage", "total_tokens"),
            full_response=payload,
            status=status,
        )


def usage_of(full_response: Any) -> Dict[str, Any]:
    usage = dig(full_response, "usage")
    return usage if isinstance(usage, dict) else {}


__all__ = ["ChatCompletionsAdapter", "usage_of"]
