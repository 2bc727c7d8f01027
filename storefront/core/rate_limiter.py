"""In-process, per-IP sliding-window limits for the unauthenticated auth endpoints."""
from __future__ import annotations

from collections import deque
import logging
import threading
import time
from typing import Callable, Deque, Dict, Tuple

from fastapi import Request

from storefront.core.errors import RateLimitError

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._events: Dict[str, Tuple[int, Deque[float]]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Record one request for ``key``; False when it exceeds ``limit`` within the window."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            _, events = self._events.get(key, (window_seconds, deque()))
            if len(events) >= limit:
                return False
            events.append(now)
            self._events[key] = (window_seconds, events)
            return True

    def _prune(self, now: float) -> None:
        # Keys whose window has fully elapsed are dropped.
        for key, (window, events) in list(self._events.items()):
            while events and events[0] <= now - window:
                events.popleft()
            if not events:
                del self._events[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


_limiter = SlidingWindowLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client and request.client.host else "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    key = f"{scope}:{client_ip(request)}"
    if not _limiter.hit(key, limit, window_seconds):
        logger.warning("Rate limit exceeded for %s", key)
        raise RateLimitError("Too many requests. Try again shortly.")


def reset_rate_limits() -> None:
    _limiter.clear()
