# fridaygt/core/rate_limit.py
"""
Fixed-window rate limiting keyed by client IP + route path.

The counter store is injected through the `get_rate_limit_store`
dependency so the in-process store can be swapped for a shared one
(e.g. Redis) via `app.dependency_overrides` without touching routes.

The in-memory store is per-process; with several workers each process
counts separately, so limits are soft.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from fastapi import Depends, HTTPException, Request, Response, status

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 60


class RateLimitStore(Protocol):
    def increment(self, key: str, window_seconds: int) -> tuple[int, float]:
        """
        Count one hit for `key`.

        Returns:
            (hits in the current window, window reset time as epoch seconds)
        """
        ...


class InMemoryRateLimitStore:
    """
    Process-local store: {key: [count, reset_at]}.

    Expired windows are swept at most once per SWEEP_INTERVAL_SECONDS,
    piggybacking on increment() instead of a background thread.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, list[float]] = {}
        self._last_sweep = clock()

    def increment(self, key: str, window_seconds: int) -> tuple[int, float]:
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)

            window = self._windows.get(key)
            if window is None or window[1] <= now:
                window = [0, now + window_seconds]
                self._windows[key] = window

            window[0] += 1
            return int(window[0]), window[1]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        expired = [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]
        for k in expired:
            del self._windows[k]
        self._last_sweep = now


@dataclass(frozen=True)
class RateLimitConfig:
    limit: int
    window_seconds: int = 60


# Presets used by the routers
RATE_LIMITS: dict[str, RateLimitConfig] = {
    "auth": RateLimitConfig(limit=5),
    "mutation": RateLimitConfig(limit=20),
    "query": RateLimitConfig(limit=100),
    "expensive": RateLimitConfig(limit=3),
}

_default_store = InMemoryRateLimitStore()


def get_rate_limit_store() -> RateLimitStore:
    """FastAPI dependency returning the active counter store."""
    return _default_store


def client_ip(request: Request) -> str:
    """
    Best-effort client address behind proxies.

    Order: X-Forwarded-For (first hop), X-Real-IP, CF-Connecting-IP, peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _no_guard() -> None:
    return None


def rate_limit(preset: str, guard: Callable[..., Any] | None = None):
    """
    Build a route dependency enforcing one of RATE_LIMITS.

    `guard` is the route's auth dependency. It runs before the counter,
    so rejected callers do not use up quota; FastAPI caches its result
    for the endpoint's own `Depends(guard)`.

    Usage:

        @router.post("", dependencies=[Depends(rate_limit("mutation", require_approved))])
    """
    config = RATE_LIMITS[preset]

    def dependency(
        request: Request,
        response: Response,
        _principal: Any = Depends(guard or _no_guard),
        store: RateLimitStore = Depends(get_rate_limit_store),
    ) -> None:
        key = f"{client_ip(request)}:{request.url.path}"
        count, reset_at = store.increment(key, config.window_seconds)

        remaining = max(config.limit - count, 0)
        headers = {
            "X-RateLimit-Limit": str(config.limit),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(int(reset_at)),
        }

        if count > config.limit:
            retry_after = max(math.ceil(reset_at - time.time()), 1)
            headers["Retry-After"] = str(retry_after)
            logger.warning("Rate limit exceeded (%s) for %s", preset, request.url.path)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers=headers,
            )

        for name, value in headers.items():
            response.headers[name] = value

    return dependency
