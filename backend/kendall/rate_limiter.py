"""
Fixed-window rate limiter.

One instance per endpoint family, created in the app lifespan. State is
in-memory and reset on restart (it only throttles abuse). Expired windows
are evicted lazily on access.
"""

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Tuple

from fastapi import Request


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds
    retry_after: int = 0

    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": datetime.fromtimestamp(self.reset_at, tz=timezone.utc).isoformat(),
        }


class FixedWindowRateLimiter:
    """Allow `limit` requests per key per `window_seconds`."""

    # Expired windows are swept once the table grows past this
    EVICTION_THRESHOLD = 1000

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}

    def check(self, key: str) -> RateLimitResult:
        """Count one request for `key` and report whether it is allowed."""
        now = self.clock()
        self._evict_expired(now)

        count, reset_at = self._windows.get(key, (0, now + self.window_seconds))
        if reset_at <= now:
            count, reset_at = 0, now + self.window_seconds

        if count >= self.limit:
            return RateLimitResult(
                allowed=False,
                limit=self.limit,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(0, math.ceil(reset_at - now)),
            )

        count += 1
        self._windows[key] = (count, reset_at)
        return RateLimitResult(allowed=True, limit=self.limit, remaining=self.limit - count, reset_at=reset_at)

    def reset(self) -> None:
        self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        if len(self._windows) <= self.EVICTION_THRESHOLD:
            return
        for key in [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]:
            del self._windows[key]


def client_key(request: Request) -> str:
    """Caller address: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"
