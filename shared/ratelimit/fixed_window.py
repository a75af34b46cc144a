"""
Fixed-window rate limiter.

Counts admissions per scope in non-overlapping windows of `window_seconds`
and rejects once `limit` is exceeded. Counting and window expiry are
delegated to the `limits` fixed-window strategy over in-memory storage.
Every call is counted, including the ones that get rejected, so a scope
that keeps hammering after hitting the cap stays rejected until its window
elapses.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter as FixedWindowStrategy

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"

DEFAULT_LIMIT = 25
DEFAULT_WINDOW_SECONDS = 3600


@dataclass
class RateWindow:
    scope_key: str
    window_start: float
    count: int
    limit: int


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    count: int
    limit: int
    reset_in_seconds: float

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)


class FixedWindowRateLimiter:
    """Process-local fixed-window limiter; one window per scope key."""

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        storage: Storage | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        self.limit = limit
        self.window_seconds = int(window_seconds)
        self._item: RateLimitItem = RateLimitItemPerSecond(
            limit, self.window_seconds, namespace="story"
        )
        self._storage = storage or MemoryStorage()
        self._strategy = FixedWindowStrategy(self._storage)

    def admit(self, scope_key: str = GLOBAL_SCOPE) -> RateDecision:
        """Count one attempt against `scope_key` and decide whether to admit it."""
        allowed = self._strategy.hit(self._item, scope_key)
        count = self._storage.get(self._item.key_for(scope_key))
        reset_time, _ = self._strategy.get_window_stats(self._item, scope_key)

        if not allowed:
            logger.warning(
                "Rate limit exceeded for scope %s (%d/%d)",
                scope_key,
                count,
                self.limit,
            )
        return RateDecision(
            allowed=allowed,
            count=count,
            limit=self.limit,
            reset_in_seconds=max(reset_time - time.time(), 0.0),
        )

    def window(self, scope_key: str = GLOBAL_SCOPE) -> RateWindow | None:
        """Snapshot of the current window for `scope_key`, if any."""
        key = self._item.key_for(scope_key)
        count = self._storage.get(key)
        if not count:
            return None
        return RateWindow(
            scope_key=scope_key,
            window_start=self._storage.get_expiry(key) - self.window_seconds,
            count=count,
            limit=self.limit,
        )

    def reset(self, scope_key: str | None = None) -> None:
        if scope_key is None:
            self._storage.reset()
        else:
            self._strategy.clear(self._item, scope_key)
