from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from crm_gateway.models.config_models import AIConfig

"""Generative-AI analysis proxy.

Used endpoints (Google Generative Language API):
- GET  /v1/models?key=...                          -> key check
- POST /v1beta/models/{model}:generateContent?key=  -> {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

The caller's prompt is passed through unchanged.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "AIErrorDetails",
    "AIServiceError",
    "generate_analysis",
    "verify_api_key",
]

GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.3,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 8192,
}

KEY_CHECK_TIMEOUT_SECONDS = 10.0

STATUS_ERROR_TYPES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


@dataclass(frozen=True)
class AIErrorDetails:
    status_code: int
    error_type: str
    raw_response: str | None
    request_size: int
    timestamp: str
    api_endpoint: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AIServiceError(RuntimeError):
    def __init__(self, message: str, details: AIErrorDetails | None = None):
        super().__init__(message)
        self.details = details


def error_type_for_status(status_code: int) -> str:
    return STATUS_ERROR_TYPES.get(status_code, "Unknown Error")


def _client(config: AIConfig, timeout: float, transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=config.base_url.rstrip("/"), timeout=timeout, transport=transport)


async def verify_api_key(config: AIConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
    """Raise AIServiceError unless the models list endpoint accepts the key."""
    try:
        async with _client(config, KEY_CHECK_TIMEOUT_SECONDS, transport) as client:
            resp = await client.get("/v1/models", params={"key": config.api_key or ""})
    except httpx.HTTPError as e:
        raise AIServiceError(f"Failed to make request to AI API: {e}") from e

    if resp.status_code != 200:
        raise AIServiceError(f"AI API returned error: {resp.status_code} {resp.reason_phrase}")


def extract_text(data: Any) -> str:
    """candidates[0].content.parts[0].text, or AIServiceError for any other shape."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise AIServiceError(f"Invalid AI API response format. Response: {json.dumps(data)[:500]}") from e
    if not isinstance(text, str):
        raise AIServiceError(f"Invalid AI API response format. Response: {json.dumps(data)[:500]}")
    return text


async def generate_analysis(
    config: AIConfig,
    prompt: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Send one prompt to generateContent and return the generated text.

    Raises:
        AIServiceError: transport failure, non-2xx status (with details), or
            an unexpected response body
    """
    path = f"/v1beta/models/{config.model}:generateContent"
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": GENERATION_CONFIG,
    }
    request_size = len(json.dumps(payload))
    endpoint = f"{config.base_url.rstrip('/')}{path}"
    logger.info("AI request size=%d bytes endpoint=%s", request_size, endpoint)

    start = time.perf_counter()
    try:
        async with _client(config, config.timeout_seconds, transport) as client:
            resp = await client.post(path, params={"key": config.api_key or ""}, json=payload)
    except httpx.HTTPError as e:
        raise AIServiceError(f"Failed to make request to AI API: {e}") from e
    logger.info("AI response status=%d duration=%.3fs", resp.status_code, time.perf_counter() - start)

    if not resp.is_success:
        body = resp.text
        details = AIErrorDetails(
            status_code=resp.status_code,
            error_type=error_type_for_status(resp.status_code),
            raw_response=body,
            request_size=request_size,
            timestamp=datetime.now(UTC).isoformat(),
            api_endpoint=endpoint,
        )
        logger.warning("AI API error: %s (%d)", details.error_type, details.status_code)
        raise AIServiceError(f"AI API error {resp.status_code}: {body[:500]}", details)

    try:
        data = resp.json()
    except ValueError as e:
        raise AIServiceError("Failed to parse AI API response") from e
    return extract_text(data)
