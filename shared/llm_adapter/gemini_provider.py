"""
Google Gemini provider using the native generateContent REST endpoint.

The raw JSON body is returned untouched in LLMResponse.payload so the
gateway can hand it back to callers in the upstream's own shape. One
request per generate() call, bounded by a timeout, never retried.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import httpx

from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.errors import UpstreamError
from shared.llm_adapter.models import LLMRequest, LLMResponse
from shared.observability.metrics import llm_tokens, upstream_latency

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_TIMEOUT = 30.0


class GeminiProvider(LLMProvider):
    """
    Gemini generateContent adapter.

    Reads from env when arguments are omitted:
      LLM_BASE_URL         -- API root (default: public v1beta endpoint)
      LLM_MODEL            -- model name (default: gemini-1.5-flash)
      LLM_REQUEST_TIMEOUT  -- seconds (default: 30)
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (
            base_url or os.environ.get("LLM_BASE_URL", "") or DEFAULT_BASE_URL
        ).rstrip("/")
        self._model = model or os.environ.get("LLM_MODEL", "") or DEFAULT_MODEL
        self._timeout = (
            timeout
            if timeout is not None
            else float(os.environ.get("LLM_REQUEST_TIMEOUT", str(DEFAULT_TIMEOUT)))
        )
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, request: LLMRequest) -> LLMResponse:
        if not request.api_key:
            raise UpstreamError("No API key configured for the generation service")

        model = request.model or self._model
        url = f"{self._base_url}/models/{model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "maxOutputTokens": request.max_tokens,
                "temperature": request.temperature,
            },
        }

        started = time.perf_counter()
        try:
            resp = await self._client.post(
                url, params={"key": request.api_key}, json=body
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(
                f"Upstream request timed out after {self._timeout:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Upstream request failed: {exc}") from exc
        finally:
            upstream_latency.labels(model=model).observe(
                time.perf_counter() - started
            )

        if resp.status_code // 100 != 2:
            raise UpstreamError(
                _error_message(resp), status_code=resp.status_code
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError(
                "Upstream returned a non-JSON body", status_code=resp.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamError(
                "Upstream returned an unexpected body", status_code=resp.status_code
            )

        usage = payload.get("usageMetadata") or {}
        prompt_tokens = int(usage.get("promptTokenCount", 0) or 0)
        completion_tokens = int(usage.get("candidatesTokenCount", 0) or 0)
        llm_tokens.labels(direction="prompt").inc(prompt_tokens)
        llm_tokens.labels(direction="completion").inc(completion_tokens)

        return LLMResponse(
            payload=payload,
            content=_extract_text(payload),
            model=str(payload.get("modelVersion") or model),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=int(
                usage.get("totalTokenCount", prompt_tokens + completion_tokens) or 0
            ),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(resp: httpx.Response) -> str:
    """Prefer the upstream's `error.message`; fall back to the status line."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Request failed with status code {resp.status_code}"


def _extract_text(payload: dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))
