from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from crm_gateway.models.config_models import AIConfig
from crm_gateway.services.ai_analysis import (
    GENERATION_CONFIG,
    AIServiceError,
    error_type_for_status,
    extract_text,
    generate_analysis,
    verify_api_key,
)

CONFIG = AIConfig(api_key="AIzaTESTKEY1234", base_url="https://ai.test", model="gemini-test")


def _ok_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_generate_analysis_sends_prompt_and_generation_config():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_ok_body("Top region: Asia"))

    text = asyncio.run(generate_analysis(CONFIG, "Summarize projects", transport=httpx.MockTransport(handler)))

    assert text == "Top region: Asia"
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "AIzaTESTKEY1234"
    body = json.loads(request.content)
    assert body["contents"] == [{"parts": [{"text": "Summarize projects"}]}]
    assert body["generationConfig"] == GENERATION_CONFIG


def test_generate_analysis_error_details():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text='{"error": "quota"}')

    with pytest.raises(AIServiceError) as exc_info:
        asyncio.run(generate_analysis(CONFIG, "x", transport=httpx.MockTransport(handler)))

    details = exc_info.value.details
    assert details is not None
    assert details.status_code == 429
    assert details.error_type == "Rate Limited"
    assert details.raw_response == '{"error": "quota"}'
    assert details.request_size > 0
    assert details.api_endpoint == "https://ai.test/v1beta/models/gemini-test:generateContent"
    assert "AIzaTESTKEY1234" not in json.dumps(details.to_dict())


def test_generate_analysis_unexpected_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(AIServiceError, match="Invalid AI API response format"):
        asyncio.run(generate_analysis(CONFIG, "x", transport=httpx.MockTransport(handler)))


def test_generate_analysis_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AIServiceError, match="Failed to make request"):
        asyncio.run(generate_analysis(CONFIG, "x", transport=httpx.MockTransport(handler)))


@pytest.mark.parametrize(
    "status, expected",
    [
        (400, "Bad Request"),
        (401, "Unauthorized"),
        (403, "Forbidden"),
        (429, "Rate Limited"),
        (500, "Internal Server Error"),
        (502, "Bad Gateway"),
        (503, "Service Unavailable"),
        (504, "Gateway Timeout"),
        (418, "Unknown Error"),
    ],
)
def test_error_type_for_status(status, expected):
    assert error_type_for_status(status) == expected


def test_extract_text_rejects_non_string():
    with pytest.raises(AIServiceError):
        extract_text({"candidates": [{"content": {"parts": [{"text": 5}]}}]})


def test_verify_api_key():
    def ok(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/models"
        return httpx.Response(200, json={"models": []})

    asyncio.run(verify_api_key(CONFIG, transport=httpx.MockTransport(ok)))

    def denied(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403)

    with pytest.raises(AIServiceError, match="403"):
        asyncio.run(verify_api_key(CONFIG, transport=httpx.MockTransport(denied)))
