import pytest

from llm_relay.errors import (
    RateLimitExceeded,
    UnsupportedModelError,
    VendorError,
    extract_error_message,
)


@pytest.mark.parametrize(
    "body, expected",
    [
        ('{"error": {"message": "Invalid API key", "type": "auth"}}', "Invalid API key"),
        ('{"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}', "Overloaded"),
        ('[{"error": {"code": 400, "message": "API key not valid"}}]', "API key not valid"),
        ('{"detail": "Not found"}', "Not found"),
        ('{"error": "quota"}', "quota"),
        ("upstream connect error", "upstream connect error"),
        ("", ""),
        (None, ""),
    ],
)
def test_extract_error_message(body, expected):
    assert extract_error_message(body) == expected


def test_vendor_error_keeps_status_and_raw_body():
    body = '{"error": {"message": "Rate limit reached"}}'
    err = VendorError("groq", 429, body)
    assert err.status == 429
    assert err.message == "groq API error: 429 Rate limit reached"
    assert err.to_dict() == {
        "message": "groq API error: 429 Rate limit reached",
        "code": "VENDOR_ERROR",
        "type": "VendorError",
        "status": 429,
    }


def test_error_response_envelope():
    payload = UnsupportedModelError("gpt-0").to_response().model_dump()
    assert payload == {
        "error": "UNSUPPORTED_MODEL",
        "message": "Unsupported model: gpt-0",
        "code": 400,
        "details": {"type": "UnsupportedModelError", "model": "gpt-0"},
    }


def test_rate_limit_error_hides_current_count():
    err = RateLimitExceeded("tenant-1", limit=10, count=11)
    assert err.status == 429
    assert err.details == {"limit": 10}
    assert err.count == 11


def test_vendor_redirect_becomes_bad_gateway():
    err = VendorError("openai", 307, "")
    assert err.status == 502
    assert err.vendor_status == 307
    assert err.details["vendor_status"] == 307
    assert err.message == "openai API error: 307 empty response body"
