"""
Fixed-window rate limiting keyed by client address.

The counter table lives in process memory, so each worker enforces its own
limit. A multi-worker deployment that needs a global limit must move the table
to a shared store.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from fastapi import Request

from app.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass
class _Window:
    count: int
    reset_time: float


class RateLimiter:
    def __init__(
        self,
        limit: int = 10,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

    def check(self, key: str) -> tuple[bool, int]:
        """Count one request for ``key``. Returns (is_allowed, retry_after_seconds)."""
        now = self._clock()
        with self._lock:
            self._cleanup(now)
            window = self._windows.get(key)
            if window is None or now > window.reset_time:
                self._windows[key] = _Window(count=1, reset_time=now + self.window_seconds)
                return True, 0
            if window.count < self.limit:
                window.count += 1
                return True, 0
            return False, max(1, int(window.reset_time - now))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL_SECONDS:
            return
        expired = [k for k, w in self._windows.items() if now > w.reset_time]
        for k in expired:
            del self._windows[k]
        if expired:
            logger.debug("Cleaned up %d expired rate limit entries", len(expired))
        self._last_cleanup = now


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency: raise RateLimitError once the client's window is used up."""
    limiter: RateLimiter = request.app.state.rate_limiter
    client_ip = get_client_ip(request)
    allowed, retry_after = limiter.check(client_ip)
    if not allowed:
        logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
        raise RateLimitError(retry_after=retry_after)
