from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from eventify_chat.infrastructure.db.session import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    """Ready when both the chat store and the Redis used for socket fan-out answer."""
    checks: dict[str, str] = {}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as exc:  # noqa: BLE001
        checks["postgres"] = str(exc)

    try:
        await request.app.state.redis.ping()
        checks["redis"] = "ok"
    except Exception as exc:  # noqa: BLE001
        checks["redis"] = str(exc)

    failed = {name: err for name, err in checks.items() if err != "ok"}
    if failed:
        logger.warning("Readiness check failed: %s", failed)
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": [f"{n}: {e}" for n, e in failed.items()]},
        )
    return JSONResponse(content={"status": "ready", "checks": checks})
