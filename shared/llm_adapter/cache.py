"""
LLM response caching layer.

Maps a request fingerprint to the upstream payload it produced, for a fixed
time-to-live. Identical requests inside the TTL are answered from memory
without calling the provider.

Expiry is lazy: an entry past its TTL is dropped by the lookup that finds
it. purge_expired() is available for an explicit sweep. State lives for the
lifetime of the process and is not size-bounded.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 1800.0


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    payload: dict[str, Any]
    created_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now < self.created_at + self.ttl


class ResponseCache:
    """Thread-safe in-memory TTL cache of upstream payloads."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def lookup(self, fingerprint: str) -> dict[str, Any] | None:
        """Return a copy of the cached payload, or None if absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None:
                return None
            if not entry.is_fresh(now):
                del self._entries[fingerprint]
                logger.debug("Cache entry expired for %s", fingerprint)
                return None
            payload = entry.payload
        return copy.deepcopy(payload)

    def store(
        self,
        fingerprint: str,
        payload: dict[str, Any],
        ttl: float | None = None,
    ) -> None:
        """Insert or overwrite the entry for `fingerprint`."""
        entry = CacheEntry(
            fingerprint=fingerprint,
            payload=copy.deepcopy(payload),
            created_at=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )
        with self._lock:
            self._entries[fingerprint] = entry

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if not e.is_fresh(now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Purged %d expired cache entries", len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
