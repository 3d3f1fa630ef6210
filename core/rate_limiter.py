"""
Simple rate limiter middleware (in-memory sliding window).

- Keyed by client IP; not shared between processes.
- Health probes are exempt so orchestrators never get throttled.
- Idle clients are swept once per window so the bucket map stays bounded by
  the clients active in the last window.
- Usage: app.add_middleware(RateLimiterMiddleware, calls=120, per_seconds=60)
"""
import time
import asyncio
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
from fastapi.responses import JSONResponse

from .response import error

EXEMPT_PATHS = frozenset({"/health", "/ready", "/ping"})


class RateLimiterMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, calls: int = 60, per_seconds: int = 60):
        super().__init__(app)
        self.calls = calls
        self.per_seconds = per_seconds
        self._buckets: dict[str, list[float]] = {}  # key -> [timestamps]
        self._last_sweep = 0.0
        self._lock = asyncio.Lock()

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, timestamps in self._buckets.items() if not timestamps or timestamps[-1] <= window_start]
        for key in idle:
            del self._buckets[key]

    async def hit(self, key: str, now: float) -> Optional[int]:
        """Record a request for `key`. Returns seconds to wait when over the limit, else None."""
        async with self._lock:
            window_start = now - self.per_seconds
            if now - self._last_sweep >= self.per_seconds:
                self._sweep(window_start)
                self._last_sweep = now

            timestamps = [ts for ts in self._buckets.get(key, []) if ts > window_start]
            if len(timestamps) >= self.calls:
                self._buckets[key] = timestamps
                return max(1, int(timestamps[0] + self.per_seconds - now))
            timestamps.append(now)
            self._buckets[key] = timestamps
            return None

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client = request.client.host if request.client else "anon"
        retry_after = await self.hit(f"ip:{client}", time.time())
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content=error(
                    code="rate_limited",
                    message=f"Rate limit exceeded. Retry after {retry_after} seconds",
                ),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
