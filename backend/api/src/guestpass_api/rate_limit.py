"""Fixed-window request limits for the public access routes.

Counters live in process memory, keyed by client address and route. Each
Lambda container or uvicorn worker counts on its own, which bounds guessing
per instance rather than globally.
"""

import os
import threading
import time

from fastapi import Request

from guestpass.models.errors import AccessError, ErrorCode
from guestpass.utils.logging import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60

# Requests per window for each limited route
VERIFY_TOKEN_LIMIT = 20
CHECK_DEVICE_LIMIT = 20
VERIFY_IDENTITY_LIMIT = 5


def rate_limiting_enabled() -> bool:
    return os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")


class FixedWindowLimiter:
    """Counts hits per key in fixed windows of ``window`` seconds.

    Counters from earlier windows are dropped when a new window starts, so
    memory is bounded by the keys seen in the current window.
    """

    def __init__(self, window: int = WINDOW_SECONDS) -> None:
        self.window = window
        self._hits: dict[str, tuple[int, int]] = {}
        self._current_window: int | None = None
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, now: float | None = None) -> bool:
        """Record a hit and report whether it is within ``limit``."""
        window_start = int((now if now is not None else time.time()) // self.window)
        with self._lock:
            if window_start != self._current_window:
                self._evict_before(window_start)
                self._current_window = window_start
            start, count = self._hits.get(key, (window_start, 0))
            if start != window_start:
                start, count = window_start, 0
            count += 1
            self._hits[key] = (start, count)
        return count <= limit

    def _evict_before(self, window_start: int) -> None:
        stale = [key for key, (start, _) in self._hits.items() if start < window_start]
        for key in stale:
            del self._hits[key]

    def __len__(self) -> int:
        return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._current_window = None


_limiter = FixedWindowLimiter()


def get_limiter() -> FixedWindowLimiter:
    return _limiter


def rate_limit(route: str, limit: int):
    """Build a dependency enforcing ``limit`` requests per window on ``route``.

    Usage:
        @router.post("/access/verify-token",
                     dependencies=[Depends(rate_limit("verify-token", 20))])
    """

    def dependency(request: Request) -> None:
        if not rate_limiting_enabled():
            return
        client = request.client.host if request.client else "unknown"
        if not _limiter.hit(f"{route}:{client}", limit):
            logger.warning("rate_limited", extra={"route": route, "client": client})
            raise AccessError(ErrorCode.RATE_LIMITED, details={"route": route})

    return dependency
