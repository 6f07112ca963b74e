"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from stocklens.core.config import get_settings
from stocklens.core.database import get_db
from stocklens.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded", "unhealthy"]
    data_source: Literal["database", "csv"]
    database: Literal["connected", "disconnected"] | None = None


def _data_source() -> Literal["database", "csv"]:
    return "csv" if get_settings().analytics_csv_path else "database"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe; never touches the database."""
    logger.debug("health.check_started")
    return HealthResponse(status="ok", data_source=_data_source())


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness check including database connectivity.

    Args:
        db: Database session dependency.

    Returns:
        Health status with database state.
    """
    logger.debug("health.readiness_check_started")

    try:
        await db.execute(text("SELECT 1"))
        logger.info("health.database_connected")
        return HealthResponse(status="ok", data_source=_data_source(), database="connected")
    except Exception as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        # A CSV-backed deployment can still serve reports without the database
        status: Literal["degraded", "unhealthy"] = (
            "degraded" if _data_source() == "csv" else "unhealthy"
        )
        return HealthResponse(status=status, data_source=_data_source(), database="disconnected")
