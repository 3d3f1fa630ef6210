# api/routes_health.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import get_db_session
from core.response import ok, error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    """Liveness smoke test."""
    return "pong"


@router.get("/health")
async def health():
    """Simple health endpoint used by load balancers and orchestrators."""
    return ok({"status": "ok"})


@router.get("/ready")
async def ready(session: AsyncSession = Depends(get_db_session)):
    """Readiness: the database must answer a trivial query."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness check failed: %s", e)
        return JSONResponse(status_code=503, content=error(code="db_unreachable", message="DB unavailable"))
    return ok({"ready": True})
