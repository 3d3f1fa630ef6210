"""
Main FastAPI application (entrypoint).

Responsibilities:
- Wire API routers (users, profiles, addresses under /v1; health probes)
- Register centralized exception handlers
- Provide middleware: CORS, request-id logging, simple rate limiting
- Create DB tables on startup when AUTO_CREATE_SCHEMA (or the test profile) is on
Notes:
- OpenAPI docs are served by FastAPI at /docs, /redoc and /openapi.json.
- Production schema changes go through Alembic (`alembic upgrade head`).
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

# routers
from api import routes_users, routes_profiles, routes_addresses, routes_health
from api.assemblers import USERS_PATH
from config.settings import settings
from core.exception_handlers import register_exception_handlers
from core.logging import configure_logging, request_logging_middleware
from core.rate_limiter import RateLimiterMiddleware

from core.db import create_schema, engine

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description="Manage users, their profiles and their postal addresses.",
)

app.include_router(routes_health.router, tags=["health"])
app.include_router(routes_users.router, prefix=USERS_PATH, tags=["users"])
app.include_router(routes_profiles.router, prefix=USERS_PATH, tags=["profiles"])
app.include_router(routes_addresses.router, prefix=USERS_PATH, tags=["addresses"])

register_exception_handlers(app)


def install_middleware(target: FastAPI, rate_limit: bool, calls: int, per_seconds: int) -> None:
    """
    The last middleware added runs first, so the stack from the outside in is
    CORS -> request logging -> rate limiter. A 429 therefore still gets CORS
    headers and an X-Request-ID.
    """
    if rate_limit:
        target.add_middleware(RateLimiterMiddleware, calls=calls, per_seconds=per_seconds)

    # Adds X-Request-ID header and logs every request
    target.middleware("http")(request_logging_middleware)

    target.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Request-ID", "Retry-After"],
    )


install_middleware(
    app,
    rate_limit=settings.RATE_LIMIT_ENABLED,
    calls=settings.RATE_LIMIT_CALLS,
    per_seconds=settings.RATE_LIMIT_PERIOD,
)


@app.on_event("startup")
async def on_startup():
    """
    On startup:
    - Create DB tables for dev/test. In production use Alembic migrations instead.
    """
    logger.info("Starting %s %s (profile=%s)", settings.API_TITLE, settings.API_VERSION, settings.APP_PROFILE)
    if settings.auto_create_schema and engine is not None:
        await create_schema(engine)
        logger.info("Database schema created")


@app.on_event("shutdown")
async def on_shutdown():
    if engine is not None:
        await engine.dispose()


if __name__ == "__main__":
    # Local dev: python main.py (auto-reload when DEBUG). Production: uvicorn/gunicorn with workers.
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
