"""
Provider factory -- single entry point for the upstream client.

Reads LLM_PROVIDER from env (default: 'gemini') and returns a new provider.
Each application builds its own provider at startup and closes it on
shutdown, so instances are never shared between app lifecycles.

Supported providers:

  gemini  Google AI generateContent -- key supplied per request
                                       (caller key or GEMINI_API_KEY)
  mock    Built-in deterministic mock, no network, no key needed
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.gemini_provider import GeminiProvider
from shared.llm_adapter.mock_provider import MockProvider

logger = logging.getLogger(__name__)

_PROVIDERS: dict[str, Callable[..., LLMProvider]] = {
    "gemini": GeminiProvider,
    "mock": MockProvider,
}


def create_llm_provider(
    provider_name: str | None = None,
    model: str | None = None,
    timeout: float | None = None,
    base_url: str | None = None,
) -> LLMProvider:
    """
    Build a provider for the configured backend.

    Args:
        provider_name: Override for LLM_PROVIDER env var.
        model:         Model override (gemini only).
        timeout:       Request timeout in seconds (gemini only).
        base_url:      API root override (gemini only).
    """
    name = (provider_name or os.environ.get("LLM_PROVIDER", "gemini")).lower()

    provider_cls = _PROVIDERS.get(name)
    if provider_cls is None:
        raise ValueError(
            f"Unknown LLM provider '{name}'. "
            f"Available: {', '.join(sorted(_PROVIDERS))}"
        )

    if provider_cls is GeminiProvider:
        provider = GeminiProvider(model=model, timeout=timeout, base_url=base_url)
    else:
        provider = provider_cls()

    logger.info(
        "LLM provider initialized: %s (model=%s)",
        name,
        model or os.environ.get("LLM_MODEL", "provider-default"),
    )
    return provider
