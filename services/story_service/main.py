"""
Story Service -- single HTTP entry point for story generation.

Responsibilities:
1. GET /story   -- rate-limited, cached story generation via the LLM adapter
2. GET /health  -- liveness plus environment name
3. GET /metrics -- Prometheus exposition

The limiter, cache and provider are built once per application in
create_app() and shared by every request through app.state.
"""

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.llm_adapter import LLMProvider, ResponseCache, create_llm_provider
from shared.logging.logger import setup_logging
from shared.observability.metrics import metrics_response, story_requests
from shared.ratelimit import FixedWindowRateLimiter, RateDecision
from services.story_service.config import StoryConfig
from services.story_service.errors import (
    GENERATION_FAILED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    RateLimitExceeded,
    StoryGenerationError,
    ValidationError,
)
from services.story_service.models import GenerationRequest
from services.story_service.orchestrator import StoryOrchestrator

SERVICE_NAME = "story_service"

logger = logging.getLogger(SERVICE_NAME)


def _rate_limit_headers(decision: RateDecision) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset_in_seconds)),
    }


def create_app(
    cfg: StoryConfig | None = None,
    provider: LLMProvider | None = None,
) -> FastAPI:
    cfg = cfg or StoryConfig.from_env()
    provider = provider or create_llm_provider(
        cfg.llm_provider,
        model=cfg.llm_model,
        timeout=cfg.request_timeout,
        base_url=cfg.llm_base_url,
    )
    orchestrator = StoryOrchestrator(
        limiter=FixedWindowRateLimiter(
            limit=cfg.rate_limit_max,
            window_seconds=cfg.rate_limit_window_seconds,
        ),
        cache=ResponseCache(default_ttl=cfg.cache_ttl_seconds),
        provider=provider,
        default_api_key=cfg.default_api_key,
        cache_ttl=cfg.cache_ttl_seconds,
        per_caller_limits=cfg.rate_limit_per_caller,
    )

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        service_logger = setup_logging(SERVICE_NAME, cfg.log_level)
        service_logger.info(
            "Story Service ready on port %d",
            cfg.port,
            extra={
                "_extra": {
                    "environment": cfg.environment,
                    "provider": cfg.llm_provider,
                    "default_key_configured": cfg.default_api_key is not None,
                }
            },
        )
        yield

        service_logger.info("Shutting down")
        await provider.aclose()

    application = FastAPI(
        title="Story Service",
        version="1.0.0",
        description="Rate-limited, cached story generation over a generative-text API",
        lifespan=lifespan,
    )
    application.state.config = cfg
    application.state.orchestrator = orchestrator

    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Wrong method on a known path reads as an unknown endpoint too.
        if exc.status_code in (404, 405):
            return JSONResponse(content={"error": "Endpoint not found"}, status_code=404)
        return JSONResponse(
            content={"error": str(exc.detail)},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @application.get("/health")
    async def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": cfg.environment,
        }

    @application.get("/metrics")
    async def metrics():
        return metrics_response()

    @application.get("/story")
    async def story(
        request: Request,
        word: str | None = Query(default=None),
        api_key: str | None = Query(default=None, alias="apiKey"),
        word_count: str | None = Query(default=None, alias="wordCount"),
    ):
        orch: StoryOrchestrator = request.app.state.orchestrator
        gen_request = GenerationRequest(
            topic=word,
            word_count=word_count,
            api_key=api_key,
            caller_key=request.client.host if request.client else None,
        )

        try:
            orch.validate(gen_request)
            decision = orch.admit(gen_request)
        except ValidationError as exc:
            story_requests.labels(outcome="invalid").inc()
            return JSONResponse(content={"error": exc.message}, status_code=400)
        except RateLimitExceeded as exc:
            story_requests.labels(outcome="rate_limited").inc()
            headers = _rate_limit_headers(exc.decision)
            headers["Retry-After"] = headers["X-RateLimit-Reset"]
            return JSONResponse(
                content={"error": RATE_LIMITED_MESSAGE},
                status_code=429,
                headers=headers,
            )

        headers = _rate_limit_headers(decision)
        try:
            result = await orch.generate(gen_request, decision=decision)
        except StoryGenerationError as exc:
            story_requests.labels(outcome="failed").inc()
            return JSONResponse(
                content={
                    "error": GENERATION_FAILED_MESSAGE,
                    "details": exc.details,
                    "usedApiKey": exc.used_key_source.value,
                },
                status_code=500,
                headers=headers,
            )
        except Exception as exc:
            logger.exception("Unexpected failure while generating story")
            story_requests.labels(outcome="failed").inc()
            return JSONResponse(
                content={
                    "error": GENERATION_FAILED_MESSAGE,
                    "details": str(exc),
                    "usedApiKey": gen_request.key_source.value,
                },
                status_code=500,
                headers=headers,
            )

        story_requests.labels(
            outcome="cached" if result.served_from_cache else "generated"
        ).inc()
        return JSONResponse(content=result.to_response(), headers=headers)

    return application


def run() -> None:
    cfg = StoryConfig.from_env()
    uvicorn.run(create_app(cfg), host="0.0.0.0", port=cfg.port)


if __name__ == "__main__":
    run()
