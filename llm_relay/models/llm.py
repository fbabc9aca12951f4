from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerationParams(_WireModel):
    """
    Options bag shared by text and structured-data generation.

    Unknown keys are kept (``extra="allow"``) so vendor-specific controls,
    e.g. Perplexity's ``search_context_size``, reach the adapters untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    logit_bias: Optional[Dict[str, float]] = None
    response_format: Optional[Literal["json", "text", "xml"]] = None
    candidate_count: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = None
    stream: Optional[bool] = None

    def passthrough(self, key: str) -> Any:
        """Return a vendor-specific extra key, or None when absent."""
        extras = self.model_extra or {}
        if key in extras:
            return extras[key]
        return extras.get(to_camel(key))


class CanonicalRequest(_WireModel):
    model: str
    prompt: str
    system: str = ""
    data: Any = None
    params: GenerationParams = Field(default_factory=GenerationParams)


class ImageParams(_WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    n: Optional[int] = Field(default=None, ge=1)
    size: Optional[str] = None
    quality: Optional[str] = None
    style: Optional[str] = None
    response_format: Optional[str] = None
    user: Optional[str] = None


class CanonicalImageRequest(_WireModel):
    model: str
    prompt: str
    system: str = ""
    params: ImageParams = Field(default_factory=ImageParams)


class CanonicalResponse(_WireModel):
    content: Optional[str] = None
    total_tokens: Optional[int] = None
    full_response: Any = None
    status: int = 200


class UsageRecord(_WireModel):
    millicredits: int
    sku_id: str
    sku_name: str
    status: int


class ModelsResponse(BaseModel):
    models: List[str] = Field(default_factory=list)


class GenerateResponse(BaseModel):
    response: CanonicalResponse


__all__ = [
    "CanonicalImageRequest",
    "CanonicalRequest",
    "CanonicalResponse",
    "GenerateResponse",
    "GenerationParams",
    "ImageParams",
    "ModelsResponse",
    "UsageRecord",
]
