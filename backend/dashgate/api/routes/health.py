"""Health check endpoints. No authentication required.

- /health       — legacy, backward-compatible
- /health/live  — liveness probe (always 200)
- /health/ready — readiness probe (widget metadata database)
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import Engine, text

from dashgate.api.deps import get_engine

router = APIRouter()
logger = structlog.stdlib.get_logger("dashgate.health")

# Per-store timeout for health checks (seconds)
_HEALTH_CHECK_TIMEOUT = 3.0


@router.get("/health")
async def health_check():
    """Legacy health check — backward compatible."""
    return {"status": "healthy", "service": "dashgate"}


@router.get("/health/live")
async def liveness():
    """Liveness probe — process is alive."""
    return {"status": "live"}


def _ping_database(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


async def _check_database(engine: Engine) -> dict:
    try:
        await asyncio.wait_for(
            asyncio.to_thread(_ping_database, engine), timeout=_HEALTH_CHECK_TIMEOUT
        )
        return {"status": "ok", "_healthy": True}
    except Exception as exc:
        logger.warning("readiness_check_failed", dependency="database", error=str(exc))
        return {"status": "error", "detail": str(exc), "_healthy": False}


@router.get("/health/ready")
async def readiness(engine: Engine = Depends(get_engine)):
    """Readiness probe — the widget metadata database must answer."""
    result = await _check_database(engine)
    healthy = result.pop("_healthy")
    return JSONResponse(
        content={
            "status": "ready" if healthy else "not_ready",
            "checks": {"database": result},
        },
        status_code=200 if healthy else 503,
    )
