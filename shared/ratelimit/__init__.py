from shared.ratelimit.fixed_window import (
    GLOBAL_SCOPE,
    FixedWindowRateLimiter,
    RateDecision,
    RateWindow,
)

__all__ = [
    "GLOBAL_SCOPE",
    "FixedWindowRateLimiter",
    "RateDecision",
    "RateWindow",
]
