"""Shared fixtures for the story gateway test suite."""

from __future__ import annotations

import pytest

from shared.llm_adapter import MockProvider
from services.story_service.config import StoryConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return StoryConfig(
        port=5000,
        environment="test",
        default_api_key="default-key",
        llm_provider="mock",
        llm_model="gemini-1.5-flash",
        llm_base_url="https://upstream.test/v1beta",
        request_timeout=30.0,
        cache_ttl_seconds=1800.0,
        rate_limit_max=25,
        rate_limit_window_seconds=3600,
        rate_limit_per_caller=False,
        cors_origins=("*",),
        log_level="WARNING",
    )


@pytest.fixture
def mock_provider():
    return MockProvider()
