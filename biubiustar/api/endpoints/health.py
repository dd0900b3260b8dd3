"""Liveness and readiness probes."""
import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

STARTED_AT = time.monotonic()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health():
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": _now_iso(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


@router.get("/ready")
async def ready(request: Request):
    """Health check including DB and Redis."""
    checks = {"database": "connected", "redis": "connected"}
    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("readiness: database unreachable: %s", exc)
        checks["database"] = "unavailable"
    try:
        await request.app.state.redis.ping()
    except RedisError as exc:
        logger.warning("readiness: redis unreachable: %s", exc)
        checks["redis"] = "unavailable"
    if checks["database"] != "connected":
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "message": "Database unavailable", "data": checks},
        )
    return {"success": True, "data": checks, "timestamp": _now_iso()}
