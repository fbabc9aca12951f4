import httpx
import pytest

from llm_relay.errors import (
    GatewayError,
    ProviderNotConfiguredError,
    VendorError,
    VendorUnavailableError,
)
from llm_relay.models import CanonicalRequest, CanonicalResponse, GenerationParams
from llm_relay.provider.base import ProviderAdapter, dig, drop_none, strip_data_uri
from llm_relay.provider.config import ProviderConfig
from llm_relay.provider.openai import OpenAIAdapter


def _make_adapter(client: httpx.AsyncClient, api_key: str | None = "sk-test") -> OpenAIAdapter:
    config = ProviderConfig(
        id="openai",
        name="OpenAI",
        base_url="https://api.openai.test/v1",
        api_key=api_key,
    )
    return OpenAIAdapter(config, client, default_max_tokens=2048)


@pytest.mark.asyncio
async def test_unconfigured_provider_fails_before_io():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        adapter = _make_adapter(client, api_key=None)
        with pytest.raises(ProviderNotConfiguredError) as excinfo:
            await adapter.generate_text(CanonicalRequest(model="gpt-4o", prompt="hi"))

    assert calls == []
    assert excinfo.value.status == 503


@pytest.mark.asyncio
async def test_non_2xx_raises_vendor_error_with_raw_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429, json={"error": {"message": "Rate limit reached", "type": "requests"}}
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        adapter = _make_adapter(client)
        with pytest.raises(VendorError) as excinfo:
            await adapter.generate_text(CanonicalRequest(model="gpt-4o", prompt="hi"))

    err = excinfo.value
    assert err.status == 429
    assert err.message == "openai API error: 429 Rate limit reached"
    assert '"type": "requests"' in err.body or '"type":"requests"' in err.body
    assert err.to_dict()["type"] == "VendorError"


@pytest.mark.asyncio
async def test_success_with_non_json_body_is_vendor_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        adapter = _make_adapter(client)
        with pytest.raises(VendorUnavailableError):
            await adapter.generate_text(CanonicalRequest(model="gpt-4o", prompt="hi"))


def test_normalize_error_mapping():
    adapter = _make_adapter(httpx.AsyncClient())
    request = httpx.Request("POST", "https://api.openai.test/v1/chat/completions")

    passthrough = VendorError("openai", 400, "bad")
    assert adapter.normalize_error(passthrough) is passthrough

    timeout = adapter.normalize_error(httpx.ReadTimeout("slow", request=request))
    assert isinstance(timeout, VendorUnavailableError)
    assert timeout.status == 504
    assert timeout.code == "VENDOR_TIMEOUT"

    transport = adapter.normalize_error(httpx.ConnectError("refused", request=request))
    assert isinstance(transport, VendorUnavailableError)
    assert transport.status == 502

    other = adapter.normalize_error(ValueError("boom"))
    assert type(other) is GatewayError
    assert other.status == 500
    assert other.code == "UNKNOWN_ERROR"
    assert other.to_dict() == {
        "message": "boom",
        "code": "UNKNOWN_ERROR",
        "type": "GatewayError",
        "status": 500,
    }


def test_resolve_max_tokens():
    adapter = _make_adapter(httpx.AsyncClient())
    gpt4o = adapter.get_model("gpt-4o")
    assert adapter.resolve_max_tokens(gpt4o, GenerationParams()) == 16384
    assert adapter.resolve_max_tokens(gpt4o, GenerationParams(max_tokens=100)) == 100
    assert adapter.resolve_max_tokens(gpt4o, GenerationParams(max_tokens=10**6)) == 16384


def test_helpers():
    payload = {"choices": [{"message": {"content": "x"}}]}
    assert dig(payload, "choices", 0, "message", "content") == "x"
    assert dig(payload, "choices", 3, "message") is None
    assert dig(payload, "usage", "total_tokens") is None
    assert dig(None, "a") is None
    assert drop_none({"a": 1, "b": None, "c": False}) == {"a": 1, "c": False}
    assert strip_data_uri("data:image/png;base64,QUJD") == "QUJD"
    assert strip_data_uri("QUJD") == "QUJD"
    assert strip_data_uri(None) is None


def test_adapter_without_cost_hook_cannot_be_instantiated():
    class _NoCost(ProviderAdapter):
        provider_id = "no-cost"

        def build_text_body(self, model, req, data):
            return {}

        def parse_text_response(self, payload, status):
            return CanonicalResponse(full_response=payload, status=status)

    config = ProviderConfig(id="no-cost", name="NoCost", base_url="https://no-cost.test")
    with pytest.raises(TypeError, match="cost_for"):
        _NoCost(config, httpx.AsyncClient())


@pytest.mark.asyncio
async def test_vendor_redirect_is_not_passed_to_caller():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": "https://elsewhere.test/"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        adapter = _make_adapter(client)
        with pytest.raises(VendorError) as excinfo:
            await adapter.generate_text(CanonicalRequest(model="gpt-4o", prompt="hi"))

    assert excinfo.value.status == 502
    assert excinfo.value.vendor_status == 302
