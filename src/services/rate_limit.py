"""Fixed-window request limiter keyed by client address."""

import logging
import math
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache
from starlette.requests import Request

from errors import RateLimitError

logger = logging.getLogger(__name__)


class RequestRateLimiter:
    """
    Allows `limit` hits per key in each `window_sec` window.

    Windows live in a TTLCache so idle keys are evicted on their own.
    The limiter dependencies are sync and run in the threadpool, so every
    read-modify-write on the cache holds the lock.
    """

    def __init__(
        self,
        limit: int,
        window_sec: int,
        maxsize: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_sec = window_sec
        self.clock = clock
        self._windows: TTLCache = TTLCache(maxsize=maxsize, ttl=window_sec, timer=clock)
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """Count a request for key, raising RateLimitError once over the limit."""
        with self._lock:
            now = self.clock()
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_sec:
                started, count = now, 0

            count += 1
            if count > self.limit:
                retry_after = max(1, math.ceil(self.window_sec - (now - started)))
                logger.warning(f"Rate limit exceeded for {key}")
                raise RateLimitError(retry_after_sec=retry_after)

            # Re-setting refreshes the TTL; the window start is tracked separately
            self._windows[key] = (started, count)


def client_key(request: Request, trust_proxy: bool) -> str:
    """Best guess at the client address, honoring X-Forwarded-For behind a proxy."""
    if trust_proxy:
        forwarded: Optional[str] = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
