"""
TIL Backend — Application Tests
===============================

What:  Health endpoint, request correlation ids and the rate limiter.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from tilapp import __version__
from tilapp.middleware.rate_limit import RateLimitMiddleware
from tilapp.middleware.request_id import REQUEST_ID_HEADER


@pytest.mark.asyncio
async def test_health_reports_connected_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["version"] == __version__


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/api/acronyms", headers={REQUEST_ID_HEADER: "abc123"})

    assert response.headers[REQUEST_ID_HEADER] == "abc123"


@pytest.mark.asyncio
async def test_request_id_is_generated_and_reported_in_errors(client):
    response = await client.get("/api/acronyms/first")

    assert response.status_code == 404
    assert response.json()["request_id"] == response.headers[REQUEST_ID_HEADER]


def _limited_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)

    @app.get("/ping")
    async def ping():
        return {"pong": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest.mark.asyncio
async def test_rate_limit_rejects_after_max_requests():
    transport = ASGITransport(app=_limited_app())
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        assert (await c.get("/ping")).status_code == 200
        assert (await c.get("/ping")).status_code == 200

        response = await c.get("/ping")

    assert response.status_code == 429
    assert response.json()["error"] == "rate_limit_exceeded"
    assert 0 < int(response.headers["Retry-After"]) <= 61


@pytest.mark.asyncio
async def test_rate_limit_skips_health():
    transport = ASGITransport(app=_limited_app())
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        statuses = [(await c.get("/health")).status_code for _ in range(5)]

    assert statuses == [200] * 5
