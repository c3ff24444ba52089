"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.config import get_settings
from habitledger.database import get_session
from habitledger.redis_client import get_redis_or_none

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


async def _check_redis() -> str:
    redis = get_redis_or_none()
    if redis is None:
        return "error: not initialized"
    try:
        await redis.ping()
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> dict[str, object]:  # noqa: B008
    """Report each backing service; degraded if any is unreachable."""
    checks = {"database": await _check_database(db), "redis": await _check_redis()}
    status = "ready" if all(v == "ok" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "service": "habit-ledger",
        "version": settings.app_version,
        "environment": settings.environment,
    }
