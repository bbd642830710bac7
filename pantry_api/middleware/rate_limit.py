"""
Pantry API — Rate Limiting Middleware
======================================

What:  Per-IP sliding window rate limiter.
How:   Each client IP maps to the timestamps of its requests inside the window.
       The map is a cachetools TTLCache whose TTL equals the window, so IPs
       that go quiet drop out on their own and the map stays bounded.

Rejections use the RateLimitExceededError body and a Retry-After header.
Exceptions raised inside BaseHTTPMiddleware bypass FastAPI's exception
handlers, so the 429 response is rendered here from the error object.

Single-process only: every uvicorn worker keeps its own window.
"""

import logging
import time
from typing import Callable, List, Optional

from cachetools import TTLCache
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pantry_api.config import settings
from pantry_api.exceptions import RateLimitExceededError
from pantry_api.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

MAX_TRACKED_CLIENTS = 10_000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Configuration (from settings):
        rate_limit_requests: max requests per window
        rate_limit_window:   window length in seconds
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        timer: Callable[[], float] = time.time,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self.timer = timer
        self._requests: TTLCache = TTLCache(
            maxsize=MAX_TRACKED_CLIENTS, ttl=self.window_seconds, timer=timer
        )

    def check(self, client_ip: str) -> None:
        """Record one request for `client_ip`; raise when the window is full."""
        now = self.timer()
        window_start = now - self.window_seconds
        timestamps: List[float] = [
            ts for ts in self._requests.get(client_ip, []) if ts > window_start
        ]

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                self.window_seconds,
            )
            raise RateLimitExceededError(retry_after=retry_after)

        timestamps.append(now)
        self._requests[client_ip] = timestamps

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            self.check(client_ip)
        except RateLimitExceededError as exc:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
