from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)
from fastapi import Response


story_requests = Counter(
    "story_requests_total",
    "Story requests by final outcome",
    ["outcome"],
)

cache_lookups = Counter(
    "story_cache_lookups_total",
    "Response cache lookups",
    ["result"],
)

rate_limit_rejections = Counter(
    "rate_limit_rejections_total",
    "Requests rejected by the rate limiter",
)

upstream_latency = Histogram(
    "upstream_request_latency_seconds",
    "Latency of calls to the generation service",
    ["model"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0),
)

llm_tokens = Counter(
    "llm_tokens_total",
    "Total LLM tokens consumed",
    ["direction"],
)


def metrics_response() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
