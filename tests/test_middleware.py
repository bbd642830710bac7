"""
Pantry API — Middleware Unit Tests
===================================

What:  Rate limiting window arithmetic, the 429 response, request ids and access log levels.
How:   RateLimitMiddleware.check() driven by a fake clock; a throwaway FastAPI app
       for the wire-level behaviour.
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from helpers import FakeTimer
from pantry_api.exceptions import RateLimitExceededError
from pantry_api.middleware.logging import RequestLoggingMiddleware, level_for_status
from pantry_api.middleware.rate_limit import RateLimitMiddleware
from pantry_api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware


def tiny_app(**limits):
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"pong": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, **limits)
    app.add_middleware(RequestIDMiddleware)
    return app


class TestRateLimitWindow:

    def setup_method(self):
        self.timer = FakeTimer()
        self.limiter = RateLimitMiddleware(app=None, max_requests=3, window_seconds=60, timer=self.timer)

    def test_allows_up_to_limit(self):
        for _ in range(3):
            self.limiter.check("10.0.0.1")

    def test_rejects_over_limit_with_retry_after(self):
        for _ in range(3):
            self.limiter.check("10.0.0.1")
            self.timer.advance(10)

        with pytest.raises(RateLimitExceededError) as exc_info:
            self.limiter.check("10.0.0.1")

        # Oldest request was 30s ago; it leaves the 60s window in 30s
        assert exc_info.value.retry_after == 31

    def test_window_slides(self):
        for _ in range(3):
            self.limiter.check("10.0.0.1")

        self.timer.advance(61)
        self.limiter.check("10.0.0.1")

    def test_clients_are_independent(self):
        for _ in range(3):
            self.limiter.check("10.0.0.1")
        self.limiter.check("10.0.0.2")


class TestMiddlewareStack:

    @pytest.mark.asyncio
    async def test_429_response(self):
        app = tiny_app(max_requests=10, window_seconds=60)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            for _ in range(10):
                assert (await client.get("/ping")).status_code == 200
            response = await client.get("/ping", headers={REQUEST_ID_HEADER: "req-7"})

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers[REQUEST_ID_HEADER] == "req-7"
        body = response.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["request_id"] == "req-7"

    @pytest.mark.asyncio
    async def test_health_is_not_rate_limited(self):
        app = tiny_app(max_requests=10, window_seconds=60)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            for _ in range(12):
                assert (await client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self):
        async with AsyncClient(transport=ASGITransport(app=tiny_app()), base_url="http://test") as client:
            response = await client.get("/ping", headers={REQUEST_ID_HEADER: "abc123"})
        assert response.headers[REQUEST_ID_HEADER] == "abc123"

    @pytest.mark.asyncio
    async def test_access_log_line(self, caplog):
        caplog.set_level(logging.INFO, logger="pantry_api.access")
        async with AsyncClient(transport=ASGITransport(app=tiny_app()), base_url="http://test") as client:
            await client.get("/ping", headers={REQUEST_ID_HEADER: "log-1"})
            await client.get("/health")

        records = [r for r in caplog.records if r.name == "pantry_api.access"]
        assert len(records) == 1
        assert records[0].path == "/ping"
        assert records[0].status == 200
        assert records[0].request_id == "log-1"


class TestLevelForStatus:

    def test_levels(self):
        assert level_for_status(200) == logging.INFO
        assert level_for_status(404) == logging.WARNING
        assert level_for_status(503) == logging.ERROR
