import json

import httpx
import pytest

from llm_relay.models import CanonicalImageRequest, CanonicalRequest
from llm_relay.provider.config import ProviderConfig
from llm_relay.provider.perplexity import PerplexityAdapter


def _make_config() -> ProviderConfig:
    return ProviderConfig(
        id="perplexity",
        name="Perplexity",
        base_url="https://api.perplexity.test",
        api_key="pplx-test",  # pragma: allowlist secret
    )


def _payload() -> dict:
    return {
        "choices": [{"message": {"content": "found it"}}],
        "usage": {"prompt_tokens": 5, "completion_tokens": 5, "total_tokens": 10},
    }


@pytest.mark.asyncio
async def test_structured_data_appended_to_prompt_and_search_options_passed():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_payload())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        adapter = PerplexityAdapter(_make_config(), client)
        resp = await adapter.generate_structured_data(
            CanonicalRequest(
                model="sonar",
                prompt="Summarise",
                system="cite sources",
                data={"topic": "bees"},
                params={
                    "search_context_size": "high",
                    "search_domain_filter": ["example.org"],
                    "return_related_questions": False,
                    "responseFormat": "json",
                },
            )
        )

    assert seen["url"] == "https://api.perplexity.test/chat/completions"
    body = seen["body"]
    assert body["messages"] == [
        {"role": "system", "content": "cite sources"},
        {"role": "user", "content": 'Summarise: \n\n{"topic": "bees"}'},
    ]
    assert body["web_search_options"] == {"search_context_size": "high"}
    assert body["search_domain_filter"] == ["example.org"]
    assert body["return_related_questions"] is False
    assert "response_format" not in body
    assert resp.content == "found it"


@pytest.mark.asyncio
async def test_generate_image_not_supported():
    async with httpx.AsyncClient() as client:
        adapter = PerplexityAdapter(_make_config(), client)
        resp = await adapter.generate_image(CanonicalImageRequest(model="sonar", prompt="x"))
    assert resp.status == 400
    assert "Perplexity" in resp.content


def test_cost_adds_request_fee_and_reasoning_tokens():
    adapter = PerplexityAdapter(_make_config(), httpx.AsyncClient())
    usage = {"prompt_tokens": 1000, "completion_tokens": 1000}
    plain = adapter.calculate_cost("sonar-deep-research", {"usage": usage}, {})
    reasoning = adapter.calculate_cost(
        "sonar-deep-research", {"usage": {**usage, "reasoning_tokens": 1000}}, {}
    )
    assert plain == pytest.approx(1000 * 2 / 1e6 + 1000 * 8 / 1e6 + 0.005)
    assert reasoning == pytest.approx(plain + 1000 * 3 / 1e6)


def test_offline_model_has_no_request_fee():
    adapter = PerplexityAdapter(_make_config(), httpx.AsyncClient())
    full = {"usage": {"prompt_tokens": 0, "completion_tokens": 0}}
    assert adapter.calculate_cost("r1-1776", full, {}) == 0
    assert adapter.calculate_cost("sonar", full, {}) == pytest.approx(0.005)
