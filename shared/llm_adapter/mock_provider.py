"""
Deterministic mock LLM provider for testing and development.

Always returns the same text for the same prompt hash, shaped like a
Gemini generateContent reply, without any network calls.
"""

from __future__ import annotations

import hashlib

from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.models import LLMRequest, LLMResponse

_MOCK_PREFIX = "[MOCK] "
_MOCK_MODEL = "mock-deterministic"


class MockProvider(LLMProvider):

    def __init__(self) -> None:
        self.call_count = 0
        self.last_request: LLMRequest | None = None

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.call_count += 1
        self.last_request = request
        prompt_hash = hashlib.sha256(request.prompt.encode()).hexdigest()

        content = (
            f"{_MOCK_PREFIX}Deterministic story for prompt hash "
            f"{prompt_hash[:12]} (max {request.max_tokens} tokens)."
        )

        prompt_tokens = len(request.prompt.split())
        completion_tokens = len(content.split())

        payload = {
            "candidates": [
                {
                    "content": {"parts": [{"text": content}], "role": "model"},
                    "finishReason": "STOP",
                    "index": 0,
                }
            ],
            "usageMetadata": {
                "promptTokenCount": prompt_tokens,
                "candidatesTokenCount": completion_tokens,
                "totalTokenCount": prompt_tokens + completion_tokens,
            },
            "modelVersion": _MOCK_MODEL,
        }

        return LLMResponse(
            payload=payload,
            content=content,
            model=_MOCK_MODEL,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
