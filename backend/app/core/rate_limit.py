"""
In-memory fixed-window rate limiting.

Counters live in a process-global dict keyed by client identifier, so they
are scoped to one process instance and vanish on restart.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from app.core.config import settings


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_time: float


rate_limit_store: dict[str, RateLimitEntry] = {}


class RateLimiter:
    """Allow ``max_requests`` per ``window_seconds`` for each identifier."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.time,
        store: Optional[dict[str, RateLimitEntry]] = None,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.store = rate_limit_store if store is None else store

    def check(self, identifier: str) -> RateLimitResult:
        now = self.clock()
        entry = self.store.get(identifier)

        if entry is None or now > entry.reset_time:
            entry = RateLimitEntry(count=1, reset_time=now + self.window_seconds)
            self.store[identifier] = entry
            return RateLimitResult(True, self.max_requests, self.max_requests - 1, entry.reset_time)

        if entry.count >= self.max_requests:
            return RateLimitResult(False, self.max_requests, 0, entry.reset_time)

        entry.count += 1
        return RateLimitResult(
            True, self.max_requests, self.max_requests - entry.count, entry.reset_time
        )

    def cleanup(self) -> None:
        """Drop expired entries."""
        now = self.clock()
        for key in [key for key, entry in self.store.items() if now > entry.reset_time]:
            del self.store[key]


def _limiter(max_requests: int) -> RateLimiter:
    return RateLimiter(max_requests, settings.RATE_LIMIT_WINDOW_SECONDS)


rate_limiters: dict[str, RateLimiter] = {
    "auth": _limiter(settings.RATE_LIMIT_AUTH),
    "upload": _limiter(settings.RATE_LIMIT_UPLOAD),
    "search": _limiter(settings.RATE_LIMIT_SEARCH),
    "api": _limiter(settings.RATE_LIMIT_API),
    "ai": _limiter(settings.RATE_LIMIT_AI),
}


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(result.reset_time)),
    }
