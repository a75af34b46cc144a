"""Errors raised while serving a story request, with their HTTP status."""

from __future__ import annotations

from shared.llm_adapter.errors import UpstreamError
from shared.ratelimit import RateDecision
from services.story_service.models import KeySource

MISSING_WORD_MESSAGE = "Word is required!"
RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
GENERATION_FAILED_MESSAGE = "Story generation failed"


class StoryError(Exception):
    status_code = 500


class ValidationError(StoryError):
    status_code = 400

    def __init__(self, message: str = MISSING_WORD_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class RateLimitExceeded(StoryError):
    status_code = 429

    def __init__(self, decision: RateDecision) -> None:
        super().__init__(RATE_LIMITED_MESSAGE)
        self.decision = decision


class StoryGenerationError(StoryError):
    """The upstream call failed; carries which key source was used."""

    status_code = 500

    def __init__(self, cause: UpstreamError, used_key_source: KeySource) -> None:
        super().__init__(cause.message)
        self.details = cause.message
        self.upstream_status = cause.status_code
        self.used_key_source = used_key_source
