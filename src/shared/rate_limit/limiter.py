"""In-process fixed-window rate limiter.

Counters live in process memory and reset on restart. The limiter exists to
blunt abuse of the lookup and sync endpoints, not for billing-grade accounting.
"""

import math
import time
from threading import Lock
from typing import Callable, Dict, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field

from src.shared.errors import RateLimitExceeded

CLEANUP_INTERVAL_MS = 5 * 60 * 1000


class RateLimitConfig(BaseModel):
    """Budget for one bucket of endpoints."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Bucket name, part of the counter key")
    limit: int = Field(..., ge=1, description="Max requests allowed in the window")
    window_ms: int = Field(..., ge=1, description="Window length in milliseconds")


class RateLimitResult(BaseModel):
    """Outcome of a rate limit check."""
    success: bool
    limit: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)
    reset_in_ms: int = Field(..., ge=0, description="Milliseconds until the window rolls over")


class RATE_LIMITS:
    """Preset budgets."""
    STRICT = RateLimitConfig(name="strict", limit=5, window_ms=60 * 60 * 1000)
    SYNC = RateLimitConfig(name="sync", limit=20, window_ms=60 * 1000)
    LOOKUP = RateLimitConfig(name="lookup", limit=30, window_ms=60 * 1000)
    GENERAL = RateLimitConfig(name="general", limit=100, window_ms=60 * 1000)
    RELAXED = RateLimitConfig(name="relaxed", limit=200, window_ms=60 * 1000)


class RateWindow:
    def __init__(self, identifier: str, window_start: float, window_ms: int, count: int = 1):
        self.identifier = identifier
        self.window_start = window_start
        self.window_ms = window_ms
        self.count = count


def _now_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    """Owns the counter table for one application instance."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        # clock returns the current time in milliseconds
        self._clock = clock or _now_ms
        self._windows: Dict[str, RateWindow] = {}
        self._lock = Lock()
        self._last_cleanup = self._clock()

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Count one request for ``identifier`` against ``config``."""
        key = f"{identifier}:{config.name}"
        with self._lock:
            now = self._clock()
            self._prune(now)

            window = self._windows.get(key)
            if window is None or now - window.window_start >= config.window_ms:
                self._windows[key] = RateWindow(identifier, now, config.window_ms)
                return RateLimitResult(
                    success=True,
                    limit=config.limit,
                    remaining=config.limit - 1,
                    reset_in_ms=config.window_ms,
                )

            reset_in_ms = max(int(math.ceil(window.window_start + config.window_ms - now)), 0)
            if window.count < config.limit:
                window.count += 1
                return RateLimitResult(
                    success=True,
                    limit=config.limit,
                    remaining=config.limit - window.count,
                    reset_in_ms=reset_in_ms,
                )

            return RateLimitResult(
                success=False,
                limit=config.limit,
                remaining=0,
                reset_in_ms=reset_in_ms,
            )

    def hit(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Like check(), but raises RateLimitExceeded when the budget is spent."""
        result = self.check(identifier, config)
        if not result.success:
            raise RateLimitExceeded(result)
        return result

    def get_window(self, identifier: str, name: str) -> Optional[RateWindow]:
        return self._windows.get(f"{identifier}:{name}")

    def reset(self, identifier: str, name: str) -> None:
        """Forget one identifier's window, e.g. after a successful action."""
        with self._lock:
            self._windows.pop(f"{identifier}:{name}", None)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        # Caller holds the lock
        if now - self._last_cleanup < CLEANUP_INTERVAL_MS:
            return
        self._last_cleanup = now
        stale = [
            key for key, window in self._windows.items()
            if now - window.window_start > window.window_ms * 2
        ]
        for key in stale:
            del self._windows[key]

    def __len__(self) -> int:
        return len(self._windows)


def get_client_ip(request: Request) -> str:
    """Get client IP address for rate limiting."""
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def get_identifier(user_id: Optional[str] = None, request: Optional[Request] = None) -> str:
    """Prefer the authenticated user id; fall back to the caller's address."""
    if user_id:
        return f"user:{user_id}"
    if request is not None:
        return f"ip:{get_client_ip(request)}"
    return "unknown"


def rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_in_ms / 1000)),
    }
