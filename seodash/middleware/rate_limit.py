"""
seodash/middleware/rate_limit.py: per-IP sliding-window limit on scan submissions.
The limit comes from RATE_LIMIT_PER_MINUTE.
"""
import time
from collections import defaultdict, deque
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from seodash.config import get_settings

WINDOW_SECONDS = 60
LIMITED_PATHS = {"/scans", "/scans/"}


class SlidingWindow:
    """Timestamps of recent hits per key, trimmed to the last `window` seconds."""

    def __init__(self, window: float = WINDOW_SECONDS):
        self.window = window
        self._hits = defaultdict(deque)

    def hit(self, key: str, limit: int, now: Optional[float] = None) -> Optional[int]:
        """Record a hit; returns seconds to wait when over the limit, else None."""
        now = time.monotonic() if now is None else now
        hits = self._hits[key]
        while hits and now - hits[0] > self.window:
            hits.popleft()
        if len(hits) >= limit:
            return int(self.window - (now - hits[0])) + 1
        hits.append(now)
        return None

    def clear(self):
        self._hits.clear()


_window = SlidingWindow()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def reset() -> None:
    _window.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "POST" or request.url.path not in LIMITED_PATHS:
            return await call_next(request)

        limit = get_settings().rate_limit_per_minute
        retry = _window.hit(client_ip(request), limit)
        if retry is not None:
            return JSONResponse(
                status_code=429,
                content={"detail": f"Too many scans submitted. Limit is {limit} per minute.",
                         "retry_after_seconds": retry},
                headers={"Retry-After": str(retry)},
            )
        return await call_next(request)
