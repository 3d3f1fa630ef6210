"""
Logging setup and request logging middleware.

- configure_logging() installs a single stdlib handler at the configured level.
- request_logging_middleware adds X-Request-ID (incoming value or UUID4) to
  request.state and the response, and logs method, path, status and latency.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.requests import Request

logger = logging.getLogger("user_service.request")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # uvicorn's access log duplicates the request log below
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True


async def request_logging_middleware(request: Request, call_next: Callable):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    latency = (time.perf_counter() - start) * 1000.0
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request_id, request.method, request.url.path, response.status_code, latency,
    )
    return response
