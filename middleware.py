# middleware.py — boundary concerns kept out of the route handlers
import logging
import time
from typing import Dict, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
INTERNAL_HEADER = "X-Internal-Request"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit per client address.

    Only failed responses (status >= 400) count, so well-behaved clients are
    never throttled. Requests carrying ``internal_token`` come from the
    in-process API client behind the HTML pages and are not limited.
    """

    def __init__(self, app, window_ms: int, max_requests: int, internal_token: Optional[str] = None):
        super().__init__(app)
        self.window = window_ms / 1000.0
        self.max_requests = max_requests
        self.internal_token = internal_token
        self.hits: Dict[str, Tuple[float, int]] = {}
        self.last_sweep = time.monotonic()

    def _sweep(self, now: float):
        if now - self.last_sweep < self.window:
            return
        self.hits = {k: v for k, v in self.hits.items() if now - v[0] < self.window}
        self.last_sweep = now

    def _current(self, key: str, now: float) -> Tuple[float, int]:
        start, count = self.hits.get(key, (now, 0))
        if now - start >= self.window:
            self.hits.pop(key, None)
            start, count = now, 0
        return start, count

    def _is_internal(self, request) -> bool:
        return self.internal_token is not None and request.headers.get(INTERNAL_HEADER) == self.internal_token

    async def dispatch(self, request, call_next):
        if self._is_internal(request):
            return await call_next(request)

        key = request.client.host if request.client else "unknown"
        now = time.monotonic()
        self._sweep(now)
        start, count = self._current(key, now)
        if count >= self.max_requests:
            logger.warning("Rate limit exceeded for %s", key)
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests", "message": RATE_LIMIT_MESSAGE},
            )

        response = await call_next(request)

        if response.status_code >= 400:
            start, count = self._current(key, time.monotonic())
            self.hits[key] = (start, count + 1)
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed)
        return response
