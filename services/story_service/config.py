from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class StoryConfig:
    port: int
    environment: str
    default_api_key: str | None
    llm_provider: str
    llm_model: str
    llm_base_url: str
    request_timeout: float
    cache_ttl_seconds: float
    rate_limit_max: int
    rate_limit_window_seconds: int
    rate_limit_per_caller: bool
    cors_origins: tuple[str, ...]
    log_level: str

    @classmethod
    def from_env(cls) -> StoryConfig:
        return cls(
            port=int(os.environ.get("PORT", "5000")),
            environment=(
                os.environ.get("APP_ENV")
                or os.environ.get("NODE_ENV")
                or "development"
            ),
            default_api_key=os.environ.get("GEMINI_API_KEY") or None,
            llm_provider=os.environ.get("LLM_PROVIDER", "gemini"),
            llm_model=os.environ.get("LLM_MODEL", "gemini-1.5-flash"),
            llm_base_url=os.environ.get(
                "LLM_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
            ),
            request_timeout=float(os.environ.get("LLM_REQUEST_TIMEOUT", "30") or 30),
            cache_ttl_seconds=float(os.environ.get("STORY_CACHE_TTL_SECONDS", "1800") or 1800),
            rate_limit_max=int(os.environ.get("RATE_LIMIT_MAX", "25") or 25),
            rate_limit_window_seconds=int(
                os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "3600") or 3600
            ),
            rate_limit_per_caller=(
                os.environ.get("RATE_LIMIT_PER_CALLER", "false").strip().lower() in _TRUTHY
            ),
            cors_origins=tuple(
                o.strip()
                for o in os.environ.get("CORS_ORIGINS", "*").split(",")
                if o.strip()
            ),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )
