"""
Gateway error taxonomy.

Every failure that reaches a caller is a ``GatewayError`` carrying the same
``{message, code, type, status}`` shape, whatever vendor or layer produced it.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error payload returned by the HTTP layer:
    {
        "error": "RATE_LIMIT_EXCEEDED",
        "message": "Hourly request limit exceeded",
        "code": 429,
        "details": {...}
    }
    """

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    code: int = Field(..., description="HTTP status code for this error")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional structured error details"
    )


class GatewayError(Exception):
    status: int = 500
    code: str = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        self.details = details or {}

    @property
    def type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "type": self.type,
            "status": self.status,
        }

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.code,
            message=self.message,
            code=self.status,
            details={"type": self.type, **self.details},
        )


class UnsupportedModelError(GatewayError):
    """Model id is not present in any registered catalog."""

    status = 400
    code = "UNSUPPORTED_MODEL"

    def __init__(self, model_id: str) -> None:
        super().__init__(
            f"Unsupported model: {model_id}", details={"model": model_id}
        )
        self.model_id = model_id


class UnsupportedModelForCostError(GatewayError):
    """Pricing lookup failed for a model that was actually called."""

    status = 500
    code = "UNSUPPORTED_MODEL_FOR_COST"

    def __init__(self, provider_id: str, model_id: str, reason: str | None = None) -> None:
        message = f"No pricing for model {model_id!r} in provider {provider_id!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message, details={"provider": provider_id, "model": model_id}
        )
        self.provider_id = provider_id
        self.model_id = model_id


class DuplicateModelError(GatewayError):
    status = 500
    code = "DUPLICATE_MODEL"

    def __init__(self, model_id: str, providers: tuple[str, str]) -> None:
        super().__init__(
            f"Model {model_id!r} is registered by both {providers[0]!r} and {providers[1]!r}",
            details={"model": model_id, "providers": list(providers)},
        )
        self.model_id = model_id


class RateLimitExceeded(GatewayError):
    status = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, tenant_id: str, limit: int, count: int) -> None:
        super().__init__(
            "Hourly request limit exceeded, please retry later",
            details={"limit": limit},
        )
        self.tenant_id = tenant_id
        self.limit = limit
        self.count = count


class VendorError(GatewayError):
    """
    Non-2xx answer from a vendor; the raw body is kept verbatim.

    Vendor 4xx/5xx statuses are passed through. Anything below 400 (a
    redirect the client did not follow) becomes 502.
    """

    code = "VENDOR_ERROR"

    def __init__(self, provider_id: str, status: int, body: str) -> None:
        vendor_message = extract_error_message(body) or "empty response body"
        super().__init__(
            f"{provider_id} API error: {status} {vendor_message}",
            status=status if status >= 400 else 502,
            details={"provider": provider_id, "vendor_status": status, "body": body},
        )
        self.provider_id = provider_id
        self.vendor_status = status
        self.body = body


class VendorUnavailableError(GatewayError):
    status = 502
    code = "VENDOR_UNAVAILABLE"


class ProviderNotConfiguredError(GatewayError):
    status = 503
    code = "PROVIDER_NOT_CONFIGURED"

    def __init__(self, provider_id: str) -> None:
        super().__init__(
            f"Provider '{provider_id}' is not configured",
            details={"provider": provider_id},
        )
        self.provider_id = provider_id


class Unauthenticated(GatewayError):
    status = 401
    code = "UNAUTHENTICATED"


def _extract_message_from_json(obj: Any) -> str | None:
    if isinstance(obj, dict):
        # OpenAI: {"error": {"message": "...", ...}}
        error = obj.get("error")
        if isinstance(error, dict):
            msg = error.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        if isinstance(error, str) and error.strip():
            return error.strip()
        # Anthropic style: {"type":"error","error":{"message": "..."}} handled above;
        # some providers return a flat message.
        msg = obj.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
        detail = obj.get("detail")
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
    if isinstance(obj, list) and obj:
        # Gemini sometimes wraps the error object in a list.
        return _extract_message_from_json(obj[0])
    return None


def extract_error_message(error_text: str | None) -> str:
    if not error_text:
        return ""
    text = str(error_text)
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    msg = _extract_message_from_json(parsed)
    return msg or text


__all__ = [
    "DuplicateModelError",
    "ErrorResponse",
    "GatewayError",
    "ProviderNotConfiguredError",
    "RateLimitExceeded",
    "Unauthenticated",
    "UnsupportedModelError",
    "UnsupportedModelForCostError",
    "VendorError",
    "VendorUnavailableError",
    "extract_error_message",
]
