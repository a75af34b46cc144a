"""Data models for the LLM adapter layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class LLMRequest(BaseModel):
    prompt: str
    temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    max_tokens: int = Field(default=350, ge=1)
    model: str = ""
    # Per-request key; never serialized or shown in repr.
    api_key: str | None = Field(default=None, repr=False, exclude=True)


class LLMResponse(BaseModel):
    """
    Upstream result.

    `payload` is the provider's JSON body, kept opaque and returned to
    callers as-is. The remaining fields are extracted for logs and metrics.
    """

    payload: dict[str, Any]
    content: str = ""
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
