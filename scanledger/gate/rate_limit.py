"""Simple in-memory rate limiter for guarded commands."""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Callable

from scanledger.errors import RateLimitExceededError


@dataclass(frozen=True)
class RateLimit:
    max_calls: int
    window_seconds: float = 60.0


DEFAULT_LIMITS: dict[str, RateLimit] = {
    "start-scan": RateLimit(1),
    "stop-scan": RateLimit(10),
    "export-results": RateLimit(5),
    "save-config": RateLimit(20),
}


@dataclass
class RateLimitStatus:
    """Rate limit status for one operation."""

    limit: int
    remaining: int
    window_seconds: float


class RateLimiter:
    """Sliding-window rate limiter keyed by operation name.

    State lives in memory only and is shared by every caller holding this
    instance; it resets when the process restarts.
    """

    def __init__(
        self,
        limits: dict[str, RateLimit] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limits = dict(DEFAULT_LIMITS if limits is None else limits)
        self.clock = clock
        self._calls: dict[str, deque[float]] = {}
        self._lock = Lock()

    def _evict(self, bucket: deque[float], now: float, window: float) -> None:
        while bucket and now - bucket[0] >= window:
            bucket.popleft()

    def check(self, operation: str) -> None:
        """Record a call, or raise RateLimitExceededError if at the ceiling.

        Operations without a configured limit are always allowed.
        """
        limit = self.limits.get(operation)
        if limit is None:
            return

        now = self.clock()
        with self._lock:
            bucket = self._calls.setdefault(operation, deque())
            self._evict(bucket, now, limit.window_seconds)

            if len(bucket) >= limit.max_calls:
                # Seconds until the oldest retained call leaves the window
                retry_after = math.ceil(limit.window_seconds - (now - bucket[0]))
                raise RateLimitExceededError(operation, max(1, retry_after))

            bucket.append(now)

    def status(self, operation: str) -> RateLimitStatus | None:
        """Get remaining calls without consuming one.

        Returns None if no rate limit applies to this operation.
        """
        limit = self.limits.get(operation)
        if limit is None:
            return None

        now = self.clock()
        with self._lock:
            bucket = self._calls.get(operation, deque())
            self._evict(bucket, now, limit.window_seconds)
            return RateLimitStatus(
                limit=limit.max_calls,
                remaining=max(0, limit.max_calls - len(bucket)),
                window_seconds=limit.window_seconds,
            )

    def reset(self, operation: str | None = None) -> None:
        with self._lock:
            if operation:
                self._calls.pop(operation, None)
            else:
                self._calls.clear()
