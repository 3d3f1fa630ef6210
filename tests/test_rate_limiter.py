import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.rate_limiter import RateLimiterMiddleware
from main import install_middleware


def _app(calls):
    app = FastAPI()
    app.add_middleware(RateLimiterMiddleware, calls=calls, per_seconds=60)

    @app.get("/v1/users")
    async def users():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


@pytest.mark.asyncio
async def test_requests_over_the_limit_are_rejected():
    async with AsyncClient(transport=ASGITransport(app=_app(2)), base_url="http://testserver") as ac:
        assert (await ac.get("/v1/users")).status_code == 200
        assert (await ac.get("/v1/users")).status_code == 200
        resp = await ac.get("/v1/users")

    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "rate_limited"
    assert int(resp.headers["Retry-After"]) >= 1


@pytest.mark.asyncio
async def test_health_probes_are_exempt():
    async with AsyncClient(transport=ASGITransport(app=_app(1)), base_url="http://testserver") as ac:
        for _ in range(5):
            assert (await ac.get("/health")).status_code == 200


@pytest.mark.asyncio
async def test_idle_clients_are_swept():
    limiter = RateLimiterMiddleware(_app(5), calls=5, per_seconds=60)

    assert await limiter.hit("ip:10.0.0.1", now=1000.0) is None
    assert await limiter.hit("ip:10.0.0.2", now=1030.0) is None
    assert set(limiter._buckets) == {"ip:10.0.0.1", "ip:10.0.0.2"}

    # one window later only the client seen in that window is kept
    assert await limiter.hit("ip:10.0.0.3", now=1075.0) is None
    assert set(limiter._buckets) == {"ip:10.0.0.2", "ip:10.0.0.3"}

    assert await limiter.hit("ip:10.0.0.3", now=1200.0) is None
    assert set(limiter._buckets) == {"ip:10.0.0.3"}


@pytest.mark.asyncio
async def test_hit_reports_retry_after_when_over_the_limit():
    limiter = RateLimiterMiddleware(_app(2), calls=2, per_seconds=60)
    assert await limiter.hit("ip:a", now=0.0) is None
    assert await limiter.hit("ip:a", now=10.0) is None
    assert await limiter.hit("ip:a", now=20.0) == 40
    # the first request has left the window
    assert await limiter.hit("ip:a", now=61.0) is None


@pytest.mark.asyncio
async def test_rejected_requests_keep_request_id_and_cors_headers():
    app = FastAPI()
    install_middleware(app, rate_limit=True, calls=1, per_seconds=60)

    @app.get("/v1/users")
    async def users():
        return {"ok": True}

    headers = {"Origin": "http://frontend.example", "X-Request-ID": "req-429"}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        assert (await ac.get("/v1/users", headers=headers)).status_code == 200
        resp = await ac.get("/v1/users", headers=headers)

    assert resp.status_code == 429
    assert resp.headers["X-Request-ID"] == "req-429"
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert resp.headers["Retry-After"]
