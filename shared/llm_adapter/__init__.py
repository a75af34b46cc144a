from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.cache import CacheEntry, ResponseCache
from shared.llm_adapter.errors import UpstreamError
from shared.llm_adapter.factory import create_llm_provider
from shared.llm_adapter.gemini_provider import GeminiProvider
from shared.llm_adapter.models import LLMRequest, LLMResponse
from shared.llm_adapter.mock_provider import MockProvider

__all__ = [
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "CacheEntry",
    "ResponseCache",
    "GeminiProvider",
    "MockProvider",
    "UpstreamError",
    "create_llm_provider",
]
