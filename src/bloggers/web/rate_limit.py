"""Per client IP request budget for the public auth endpoints."""

import time
from collections import deque
from collections.abc import Awaitable, Callable
from threading import Lock
from typing import cast

from fastapi import Request

from bloggers.errors import RateLimitError


class RateLimiter:
    """Sliding-window counter keyed by arbitrary strings."""

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._max_requests = max(1, max_requests)
        self._window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> bool:
        """Record a request; False when the key has used up its budget for the window."""
        current = self._clock()
        with self._lock:
            if current - self._last_sweep >= self._window_seconds:
                self._sweep(current)
            hits = self._hits.setdefault(key, deque())
            while hits and current - hits[0] >= self._window_seconds:
                hits.popleft()
            if len(hits) >= self._max_requests:
                return False
            hits.append(current)
            return True

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        with self._lock:
            return len(self._hits)

    def _sweep(self, current: float) -> None:
        # Drop keys whose newest hit has left the window; callers hold the lock
        idle = [key for key, hits in self._hits.items() if not hits or current - hits[-1] >= self._window_seconds]
        for key in idle:
            del self._hits[key]
        self._last_sweep = current


def rate_limit(endpoint: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency limiting one endpoint per client IP."""

    async def dependency(request: Request) -> None:
        limiter = cast(RateLimiter, request.app.state.rate_limiter)
        client_ip = request.client.host if request.client else "unknown"
        if not limiter.hit(f"{endpoint}:{client_ip}"):
            raise RateLimitError

    return dependency
