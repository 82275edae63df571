"""
Bistro API — Health endpoint
"""
import asyncio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from bistro.core.config import get_settings
from bistro.core.redis_client import get_redis
from bistro.db.database import get_db
from bistro.schemas.common import HealthResponse

settings = get_settings()
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Deep health check — verifies database and Redis connectivity.
    Returns 200 if all dependencies are healthy, 503 otherwise.
    """
    deps: dict[str, str] = {}
    healthy = True

    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["database"] = "ok"
    except Exception as e:
        deps["database"] = f"error: {str(e)[:100]}"
        healthy = False

    try:
        redis = get_redis()
        await asyncio.wait_for(redis.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["redis"] = "ok"
    except Exception as e:
        deps["redis"] = f"error: {str(e)[:100]}"
        healthy = False

    response = HealthResponse(
        status="healthy" if healthy else "degraded",
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        dependencies=deps,
    )

    return JSONResponse(
        content=response.model_dump(),
        status_code=200 if healthy else 503,
    )
