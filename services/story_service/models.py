"""Domain models for story generation requests and results."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class LengthTier(str, Enum):
    """Known story lengths; the value is the `wordCount` used on the wire."""

    SHORT = "200"
    MEDIUM = "500"
    LONG = "1000"

    @property
    def max_tokens(self) -> int:
        return _TOKEN_BUDGETS[self]

    @classmethod
    def parse(cls, raw: str | None) -> LengthTier:
        """Absent or unrecognized values fall back to SHORT."""
        if raw is None:
            return cls.SHORT
        try:
            return cls(raw)
        except ValueError:
            return cls.SHORT


DEFAULT_WORD_COUNT = LengthTier.SHORT.value


_TOKEN_BUDGETS: dict[LengthTier, int] = {
    LengthTier.SHORT: 350,
    LengthTier.MEDIUM: 750,
    LengthTier.LONG: 1500,
}


class KeySource(str, Enum):
    USER = "user"
    DEFAULT = "default"


def normalize_topic(topic: str) -> str:
    return topic.strip().lower()


def fingerprint(topic: str, word_count: str) -> str:
    """Cache key for a request: `<normalized topic>:<word count>`."""
    return f"{normalize_topic(topic)}:{word_count}"


class GenerationRequest(BaseModel):
    """
    One inbound /story call.

    `word_count` is kept exactly as the caller sent it: it is echoed back,
    used in the prompt and in the cache key. Only the token budget goes
    through LengthTier, so unknown values get the SHORT budget.
    """

    topic: str | None = None
    word_count: str = DEFAULT_WORD_COUNT
    api_key: str | None = Field(default=None, repr=False)
    caller_key: str | None = None

    @field_validator("word_count", mode="before")
    @classmethod
    def _default_word_count(cls, value: str | None) -> str:
        return value or DEFAULT_WORD_COUNT

    @field_validator("caller_key")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def length_tier(self) -> LengthTier:
        return LengthTier.parse(self.word_count)

    @property
    def key_source(self) -> KeySource:
        return KeySource.USER if self.api_key else KeySource.DEFAULT


class GenerationResult(BaseModel):
    payload: dict[str, Any]
    used_key_source: KeySource
    word_count: str
    served_from_cache: bool

    @property
    def length_tier(self) -> LengthTier:
        return LengthTier.parse(self.word_count)

    def to_response(self) -> dict[str, Any]:
        return {
            **self.payload,
            "usedApiKey": self.used_key_source.value,
            "wordCount": self.word_count,
            "cached": self.served_from_cache,
        }
