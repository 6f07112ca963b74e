"""Ingest API routes for loading staging inventory rows."""

import time

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stocklens.core.database import get_db
from stocklens.core.exceptions import DatabaseError
from stocklens.core.logging import get_logger
from stocklens.features.ingest.schemas import (
    InventoryIngestRequest,
    InventoryIngestResponse,
)
from stocklens.features.ingest.service import (
    normalize_staging,
    persist_snapshot,
    records_to_frame,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/ingest", tags=["ingest"])


@router.post(
    "/inventory-records",
    response_model=InventoryIngestResponse,
    status_code=status.HTTP_200_OK,
    summary="Load staging inventory rows",
    description="""
Load denormalized daily inventory rows into the star schema.

Each row carries store, region, product, category and seasonality alongside
the day's inventory, sales, forecast, pricing and event values. Rows are split
into the store, product and seasonality dimensions and the inventory, pricing
and event facts.

**Idempotency:** Existing keys are never overwritten (ON CONFLICT DO NOTHING).
Re-sending the same payload inserts nothing.

**Partial Success:** Rows with missing or negative values (`INVALID_VALUE`) or a
repeated (date, store, region, product) key (`DUPLICATE_RECORD`) are rejected
while the rest are loaded. The response lists every rejected row.
""",
)
async def ingest_inventory_records(
    request: InventoryIngestRequest,
    db: AsyncSession = Depends(get_db),
) -> InventoryIngestResponse:
    """Normalize and persist staging rows.

    Args:
        request: Ingest request with staging records.
        db: Async database session from dependency.

    Returns:
        Accepted/rejected counts, new rows per table and row errors.

    Raises:
        DataIntegrityError: If the accepted rows still violate an invariant.
        DatabaseError: If the database write fails.
    """
    start_time = time.perf_counter()

    logger.info(
        "ingest.inventory_records.request_received",
        record_count=len(request.records),
    )

    result = normalize_staging(records_to_frame(request.records))

    try:
        persisted = await persist_snapshot(db, result.snapshot)
    except SQLAlchemyError as e:
        logger.error(
            "ingest.inventory_records.request_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to persist inventory records",
            details={"error": str(e)},
        ) from e

    duration_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "ingest.inventory_records.request_completed",
        accepted=result.accepted_count,
        rejected=result.rejected_count,
        inserted=persisted.total_inserted,
        duration_ms=round(duration_ms, 2),
    )

    return InventoryIngestResponse(
        accepted_count=result.accepted_count,
        rejected_count=result.rejected_count,
        inserted=persisted.inserted,
        total_processed=result.total_rows,
        errors=result.errors,
        duration_ms=round(duration_ms, 2),
    )
