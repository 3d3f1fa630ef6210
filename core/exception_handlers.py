import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from .exceptions import UserServiceError
from .response import error as resp_error

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request data."


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(UserServiceError)
    async def user_service_exception_handler(request: Request, exc: UserServiceError):
        if exc.status_code >= 500:
            logger.error(
                "Request %s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__
            )
        else:
            logger.info("Request %s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=resp_error(code=exc.code, message=exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        content = resp_error(code="invalid_request_data", message=_validation_message(exc))
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        content = resp_error(code=str(exc.status_code), message=str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=resp_error(code="internal_error", message="Internal server error"))
