"""
Request orchestration for /story.

Composes the rate limiter, the response cache and the upstream provider:

    validate -> admit -> cache lookup -> [provider.generate -> cache store]

Validation failures never reach the limiter or the cache, and rejected
requests never reach the cache or the provider. Only successful upstream
payloads are cached.
"""

from __future__ import annotations

import logging

from shared.llm_adapter import LLMProvider, LLMRequest, ResponseCache, UpstreamError
from shared.observability.metrics import cache_lookups, rate_limit_rejections
from shared.ratelimit import GLOBAL_SCOPE, FixedWindowRateLimiter, RateDecision
from services.story_service.errors import (
    RateLimitExceeded,
    StoryGenerationError,
    ValidationError,
)
from services.story_service.models import (
    GenerationRequest,
    GenerationResult,
    fingerprint,
)
from services.story_service.prompts import STORY_TEMPERATURE, build_story_prompt

logger = logging.getLogger(__name__)


class StoryOrchestrator:

    def __init__(
        self,
        limiter: FixedWindowRateLimiter,
        cache: ResponseCache,
        provider: LLMProvider,
        default_api_key: str | None = None,
        cache_ttl: float | None = None,
        per_caller_limits: bool = False,
    ) -> None:
        self.limiter = limiter
        self.cache = cache
        self.provider = provider
        self._default_api_key = default_api_key
        self._cache_ttl = cache_ttl
        self._per_caller_limits = per_caller_limits

    def scope_for(self, request: GenerationRequest) -> str:
        if self._per_caller_limits and request.caller_key:
            return f"caller:{request.caller_key}"
        return GLOBAL_SCOPE

    async def generate(
        self,
        request: GenerationRequest,
        decision: RateDecision | None = None,
    ) -> GenerationResult:
        """
        Serve one story request.

        Raises:
            ValidationError:      topic missing or blank.
            RateLimitExceeded:    the scope's window is exhausted.
            StoryGenerationError: the upstream call failed.

        `decision` lets the caller pass the admission it already obtained
        through admit(); otherwise one is taken here.
        """
        topic = self.validate(request)

        if decision is None:
            decision = self.admit(request)

        key = fingerprint(topic, request.word_count)
        source = request.key_source

        cached = self.cache.lookup(key)
        if cached is not None:
            cache_lookups.labels(result="hit").inc()
            logger.info("Story cache HIT for %s", key)
            return GenerationResult(
                payload=cached,
                used_key_source=source,
                word_count=request.word_count,
                served_from_cache=True,
            )

        cache_lookups.labels(result="miss").inc()
        logger.info(
            "Story cache MISS for %s, calling upstream",
            key,
            extra={"_extra": {"key_source": source.value}},
        )

        llm_request = LLMRequest(
            prompt=build_story_prompt(topic, request.word_count),
            max_tokens=request.length_tier.max_tokens,
            temperature=STORY_TEMPERATURE,
            api_key=request.api_key or self._default_api_key,
        )
        try:
            response = await self.provider.generate(llm_request)
        except UpstreamError as exc:
            logger.error(
                "Upstream generation failed for %s: %s",
                key,
                exc.message,
                extra={
                    "_extra": {
                        "key_source": source.value,
                        "upstream_status": exc.status_code,
                    }
                },
            )
            raise StoryGenerationError(exc, source) from exc

        self.cache.store(key, response.payload, self._cache_ttl)
        logger.info(
            "Story generated for %s (%d tokens)",
            key,
            response.total_tokens,
        )
        return GenerationResult(
            payload=response.payload,
            used_key_source=source,
            word_count=request.word_count,
            served_from_cache=False,
        )

    def validate(self, request: GenerationRequest) -> str:
        """Return the topic, or raise ValidationError if it is missing."""
        topic = (request.topic or "").strip()
        if not topic:
            raise ValidationError()
        return topic

    def admit(self, request: GenerationRequest) -> RateDecision:
        """Count the request against its scope; raise if over the limit."""
        scope = self.scope_for(request)
        decision = self.limiter.admit(scope)
        if not decision.allowed:
            rate_limit_rejections.inc()
            raise RateLimitExceeded(decision)
        return decision
