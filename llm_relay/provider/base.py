"""
Provider adapter base class.

An adapter owns one vendor: its static model catalog, how a canonical request
becomes that vendor's wire body, how the vendor's body becomes a canonical
response, and how the vendor's reported usage becomes a USD cost.

Subclasses fill in the vendor-specific hooks; the HTTP call, the non-2xx
handling, modality checks and error normalisation live here so that every
vendor fails the same way.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx

from llm_relay.errors import (
    GatewayError,
    ProviderNotConfiguredError,
    UnsupportedModelError,
    UnsupportedModelForCostError,
    VendorError,
    VendorUnavailableError,
)
from llm_relay.logging_config import logger
from llm_relay.models import (
    CanonicalImageRequest,
    CanonicalRequest,
    CanonicalResponse,
    GenerationParams,
    Modality,
    ModelDescriptor,
)
from llm_relay.pricing import PricingLookupError
from llm_relay.provider.config import ProviderConfig

_LOGGED_BODY_LIMIT = 2000


def dig(obj: Any, *path: Any) -> Any:
    """Follow dict keys / list indexes, returning None on the first miss."""
    current = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def serialize_data(data: Any) -> Optional[str]:
    if data is None:
        return None
    return json.dumps(data, ensure_ascii=False)


def strip_data_uri(content: Optional[str]) -> Optional[str]:
    if content and content.startswith("data:"):
        return content.split(",", 1)[1]
    return content


class ProviderAdapter(ABC):
    """
    Concrete adapters must implement ``build_text_body``, ``parse_text_response``
    and ``cost_for``. Adapters with ``supports_images = True`` must also
    override ``build_image_body`` and ``parse_image_response``.
    """

    provider_id: str = ""
    models: Tuple[ModelDescriptor, ...] = ()

    text_path: str = "chat/completions"
    image_path: str = "images/generations"
    supports_images = False

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient,
        *,
        default_max_tokens: int = 4096,
    ) -> None:
        self.config = config
        self.client = client
        self.default_max_tokens = default_max_tokens
        self._models_by_id: Dict[str, ModelDescriptor] = {m.id: m for m in self.models}

    @property
    def name(self) -> str:
        return self.config.name

    # Catalog

    def get_models(self, modality: Modality | None = None) -> List[ModelDescriptor]:
        if modality is None:
            return list(self.models)
        return [m for m in self.models if m.supports(modality)]

    def get_model(self, model_id: str) -> Optional[ModelDescriptor]:
        return self._models_by_id.get(model_id)

    def _require_model(self, model_id: str) -> ModelDescriptor:
        model = self.get_model(model_id)
        if model is None:
            raise UnsupportedModelError(model_id)
        return model

    # Public operations

    async def generate_text(self, req: CanonicalRequest) -> CanonicalResponse:
        return await self._generate_text(req, data=None)

    async def generate_structured_data(self, req: CanonicalRequest) -> CanonicalResponse:
        return await self._generate_text(req, data=serialize_data(req.data))

    async def generate_image(self, req: CanonicalImageRequest) -> CanonicalResponse:
        if not self.supports_images:
            return self.unsupported_response(
                f"Image generation is not supported by {self.name}. "
                "Please select a different model.",
                full_response={
                    "error": "Image generation not supported",
                    "suggestion": "Use models like OpenAI's DALL-E for image generation tasks.",
                },
            )
        model = self._require_model(req.model)
        if not model.supports(Modality.IMAGE):
            return self.unsupported_response(
                f"Model {model.id} does not support image generation. "
                "Please select an image model."
            )
        body = self.build_image_body(model, req)
        payload, status = await self.post_json(self.image_path_for(model), body)
        return self.parse_image_response(payload, status)

    def calculate_cost(
        self,
        model_id: str,
        full_response: Any,
        params: Dict[str, Any] | None = None,
    ) -> float:
        model = self.get_model(model_id)
        if model is None:
            raise UnsupportedModelForCostError(self.provider_id, model_id)
        try:
            return self.cost_for(model, full_response or {}, params or {})
        except PricingLookupError as exc:
            raise UnsupportedModelForCostError(
                self.provider_id, model_id, str(exc)
            ) from exc

    def normalize_error(self, raw: BaseException) -> GatewayError:
        if isinstance(raw, GatewayError):
            return raw
        details = {"provider": self.provider_id}
        if isinstance(raw, httpx.TimeoutException):
            return VendorUnavailableError(
                f"{self.name} request timed out",
                code="VENDOR_TIMEOUT",
                status=504,
                details=details,
            )
        if isinstance(raw, httpx.HTTPError):
            return VendorUnavailableError(
                f"{self.name} request failed: {raw}", details=details
            )
        return GatewayError(str(raw) or type(raw).__name__, details=details)

    def unsupported_response(
        self, message: str, full_response: Dict[str, Any] | None = None
    ) -> CanonicalResponse:
        return CanonicalResponse(
            content=message,
            full_response=full_response
            or {"error": "Operation not supported", "suggestion": message},
            status=400,
        )

    # Hooks for subclasses

    @abstractmethod
    def build_text_body(
        self, model: ModelDescriptor, req: CanonicalRequest, data: Optional[str]
    ) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def parse_text_response(self, payload: Any, status: int) -> CanonicalResponse:
        raise NotImplementedError

    def text_path_for(self, model: ModelDescriptor) -> str:
        return self.text_path

    def build_image_body(
        self, model: ModelDescriptor, req: CanonicalImageRequest
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def image_path_for(self, model: ModelDescriptor) -> str:
        return self.image_path

    def parse_image_response(self, payload: Any, status: int) -> CanonicalResponse:
        raise NotImplementedError

    @abstractmethod
    def cost_for(
        self, model: ModelDescriptor, full_response: Any, params: Dict[str, Any]
    ) -> float:
        raise NotImplementedError

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def auth_params(self) -> Dict[str, str]:
        return {}

    # Helpers

    def resolve_max_tokens(
        self, model: ModelDescriptor, params: GenerationParams
    ) -> int:
        """Caller value, else the model ceiling, never above the ceiling."""
        requested = params.max_tokens
        ceiling = model.max_output_tokens
        if requested is None:
            return ceiling or self.default_max_tokens
        if ceiling is not None:
            return min(requested, ceiling)
        return requested

    async def _generate_text(
        self, req: CanonicalRequest, *, data: Optional[str]
    ) -> CanonicalResponse:
        model = self._require_model(req.model)
        if not model.supports(Modality.TEXT):
            return self.unsupported_response(
                f"Model {model.id} does not support text generation. "
                "Please select a text model."
            )
        body = self.build_text_body(model, req, data)
        payload, status = await self.post_json(self.text_path_for(model), body)
        return self.parse_text_response(payload, status)

    async def post_json(self, path: str, body: Dict[str, Any]) -> Tuple[Any, int]:
        """
        POST ``body`` to the vendor and return the decoded JSON and status.

        Non-2xx answers raise ``VendorError`` before anything tries to read
        content out of the body.
        """
        if not self.config.is_configured:
            raise ProviderNotConfiguredError(self.provider_id)

        url = self.config.url(path)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self.auth_headers(),
            **self.config.extra_headers,
        }
        logger.info(
            "provider %s: POST %s model=%s",
            self.provider_id,
            url,
            body.get("model"),
        )
        resp = await self.client.post(
            url,
            json=body,
            headers=headers,
            params=self.auth_params() or None,
            timeout=self.config.timeout,
        )
        if not resp.is_success:
            text = resp.text
            logger.warning(
                "provider %s: HTTP %s for %s; response=%s",
                self.provider_id,
                resp.status_code,
                url,
                text[:_LOGGED_BODY_LIMIT],
            )
            raise VendorError(self.provider_id, resp.status_code, text)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise VendorUnavailableError(
                f"{self.name} returned a non-JSON body",
                details={"provider": self.provider_id, "body": resp.text[:_LOGGED_BODY_LIMIT]},
            ) from exc
        return payload, resp.status_code


__all__ = [
    "ProviderAdapter",
    "dig",
    "drop_none",
    "serialize_data",
    "strip_data_uri",
]
