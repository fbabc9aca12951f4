import datetime as dt
import json
from typing import Any, Dict, List

import httpx
import pytest

from llm_relay.auth import TenantContext
from llm_relay.errors import (
    RateLimitExceeded,
    UnsupportedModelError,
    VendorError,
    VendorUnavailableError,
)
from llm_relay.models import CanonicalImageRequest, CanonicalRequest, Modality
from llm_relay.provider.config import load_provider_configs
from llm_relay.provider.registry import build_adapters
from llm_relay.routing.rate_limiter import HourlyRateLimiter, RedisRateCounterStore
from llm_relay.routing.resolver import ModelResolver
from llm_relay.services.gateway_service import LlmGateway
from llm_relay.settings import Settings

TENANT = TenantContext(tenant_id="tenant-1", org_id="org-1")


class FakeRedis:
    def __init__(self) -> None:
        self._data: Dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self._data[key] = self._data.get(key, 0) + 1
        return self._data[key]

    async def expire(self, key: str, seconds: int) -> bool:
        return True

    def total(self) -> int:
        return sum(self._data.values())


class RecordingBilling:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []

    async def report_usage(self, tenant_id, org_id, millicredits, sku_id, sku_name, status):
        self.calls.append(
            {
                "tenant_id": tenant_id,
                "org_id": org_id,
                "millicredits": millicredits,
                "sku_id": sku_id,
                "sku_name": sku_name,
                "status": status,
            }
        )
        if self.fail:
            raise RuntimeError("billing down")


def _openai_chat(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [{"message": {"role": "assistant", "content": "hello"}}],
            "usage": {"prompt_tokens": 1000, "completion_tokens": 500, "total_tokens": 1500},
        },
    )


def _make_gateway(handler, *, billing=None, redis=None, limit: int = 100):
    cfg = Settings(
        _env_file=None,
        openai_api_key="sk-openai",  # pragma: allowlist secret
        anthropic_api_key="sk-anthropic",  # pragma: allowlist secret
        groq_api_key="gsk",  # pragma: allowlist secret
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapters = build_adapters(client, cfg=cfg, configs=load_provider_configs(cfg))
    redis = redis or FakeRedis()
    limiter = HourlyRateLimiter(
        RedisRateCounterStore(redis),
        limit=limit,
        now_fn=lambda: dt.datetime(2025, 1, 1, 12, tzinfo=dt.timezone.utc),
    )
    billing = billing or RecordingBilling()
    gateway = LlmGateway(ModelResolver(adapters), limiter, billing, price_per_credit=0.01)
    return gateway, billing, redis


@pytest.mark.asyncio
async def test_generate_text_prices_and_reports_usage():
    gateway, billing, redis = _make_gateway(_openai_chat)

    resp = await gateway.generate_text(
        CanonicalRequest(model="gpt-4o-mini", prompt="hi", system="be terse"), TENANT
    )

    assert resp.content == "hello"
    assert redis.total() == 1
    # 1000 * 0.15/1e6 + 500 * 0.60/1e6 = 0.00045 USD -> 45 millicredits at $0.01.
    assert billing.calls == [
        {
            "tenant_id": "tenant-1",
            "org_id": "org-1",
            "millicredits": 45,
            "sku_id": "llm:openai:generate_text:gpt-4o-mini",
            "sku_name": "LLM OpenAI Generate Text gpt-4o-mini",
            "status": 200,
        }
    ]


@pytest.mark.asyncio
async def test_structured_data_uses_its_own_sku():
    gateway, billing, _ = _make_gateway(_openai_chat)

    await gateway.generate_structured_data(
        CanonicalRequest(model="gpt-4o", prompt="x", data={"a": 1}), TENANT
    )

    assert billing.calls[0]["sku_id"] == "llm:openai:generate_structured_data:gpt-4o"


@pytest.mark.asyncio
async def test_unknown_model_makes_no_http_call_and_no_increment():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return _openai_chat(request)

    gateway, billing, redis = _make_gateway(handler)

    with pytest.raises(UnsupportedModelError):
        await gateway.generate_text(
            CanonicalRequest(model="not-a-real-model", prompt="hi"), TENANT
        )

    assert calls == []
    assert redis.total() == 0
    assert billing.calls == []


@pytest.mark.asyncio
async def test_rate_limit_blocks_vendor_call():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return _openai_chat(request)

    gateway, _, _ = _make_gateway(handler, limit=1)
    req = CanonicalRequest(model="gpt-4o-mini", prompt="hi")

    await gateway.generate_text(req, TENANT)
    with pytest.raises(RateLimitExceeded):
        await gateway.generate_text(req, TENANT)

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_billing_failure_still_returns_response(caplog):
    gateway, billing, _ = _make_gateway(_openai_chat, billing=RecordingBilling(fail=True))

    resp = await gateway.generate_text(
        CanonicalRequest(model="gpt-4o-mini", prompt="hi"), TENANT
    )

    assert resp.status == 200
    assert resp.content == "hello"
    assert len(billing.calls) == 1
    assert "Failed to report usage" in caplog.text


@pytest.mark.asyncio
async def test_unsupported_operation_is_not_billed():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no vendor call expected")

    gateway, billing, redis = _make_gateway(handler)

    resp = await gateway.generate_image(
        CanonicalImageRequest(model="claude-3-7-sonnet-latest", prompt="a cat"), TENANT
    )

    assert resp.status == 400
    assert billing.calls == []
    # The call still counts against the hourly budget.
    assert redis.total() == 1


@pytest.mark.asyncio
async def test_vendor_error_propagates_without_billing():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

    gateway, billing, _ = _make_gateway(handler)

    with pytest.raises(VendorError) as excinfo:
        await gateway.generate_text(CanonicalRequest(model="gpt-4o", prompt="hi"), TENANT)

    assert excinfo.value.status == 401
    assert billing.calls == []


@pytest.mark.asyncio
async def test_transport_failure_is_normalised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gateway, billing, _ = _make_gateway(handler)

    with pytest.raises(VendorUnavailableError) as excinfo:
        await gateway.generate_text(
            CanonicalRequest(model="llama-3.1-8b-instant", prompt="hi"), TENANT
        )

    assert excinfo.value.status == 502
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert billing.calls == []


@pytest.mark.asyncio
async def test_image_generation_priced_from_request_params():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["n"] == 2
        return httpx.Response(200, json={"data": [{"b64_json": "QUJD"}, {"b64_json": "REVG"}]})

    gateway, billing, _ = _make_gateway(handler)

    resp = await gateway.generate_image(
        CanonicalImageRequest(
            model="dall-e-3", prompt="a cat", params={"n": 2, "quality": "hd", "size": "1024x1024"}
        ),
        TENANT,
    )

    assert resp.content == "QUJD"
    # 2 * $0.08 = $0.16 -> 16000 millicredits.
    assert billing.calls[0]["millicredits"] == 16000
    assert billing.calls[0]["sku_id"] == "llm:openai:generate_image:dall-e-3"


def test_get_models_by_modality():
    gateway, _, _ = _make_gateway(_openai_chat)

    image_models = gateway.get_models(Modality.IMAGE)
    assert image_models == ["dall-e-3", "dall-e-2", "imagen-3.0-generate-002", "grok-2-image"]
    assert "gpt-4o-mini" in gateway.get_models(Modality.TEXT)
    assert len(gateway.get_models()) == len(image_models) + len(gateway.get_models(Modality.TEXT))
