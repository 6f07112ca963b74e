"""API routes for inventory analytics reports.

Reports are computed on request from a fresh snapshot of the star schema,
or of the configured CSV file when ``analytics_csv_path`` is set. The CSV
snapshot is read off the event loop and reused until the file changes.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stocklens.core.config import get_settings
from stocklens.core.database import get_db
from stocklens.core.exceptions import DatabaseError
from stocklens.core.logging import get_logger
from stocklens.features.analytics.schemas import (
    ReportCatalogResponse,
    ReportName,
    ReportPageResponse,
)
from stocklens.features.analytics.service import AnalyticsService, resolve_report_name
from stocklens.features.data_platform.snapshot import FactSnapshot, FactSnapshotLoader
from stocklens.features.ingest.service import cached_csv_snapshot
from stocklens.shared.schemas import PaginationParams

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_report_name(name: str) -> ReportName:
    """Path dependency resolving a report name before any data is loaded."""
    return resolve_report_name(name)


async def get_snapshot(db: AsyncSession = Depends(get_db)) -> FactSnapshot:
    """Load the fact snapshot reports are computed from.

    Args:
        db: Database session (unused when a CSV source is configured).

    Returns:
        Validated snapshot.

    Raises:
        ValidationError: If the configured CSV file cannot be read.
        DatabaseError: If the star schema cannot be read.
    """
    settings = get_settings()
    if settings.analytics_csv_path:
        return await run_in_threadpool(cached_csv_snapshot, settings.analytics_csv_path)

    try:
        return await FactSnapshotLoader().load(db)
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            "analytics.snapshot_load_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise DatabaseError(
            message="Failed to load inventory data",
            details={"error": str(e)},
        ) from e


# =============================================================================
# Report Endpoints
# =============================================================================


@router.get(
    "/reports",
    response_model=ReportCatalogResponse,
    summary="List available reports",
    description="""
List every inventory report with its description and output columns.

Use a report `name` with `GET /analytics/reports/{name}` to compute it.
""",
)
async def list_reports() -> ReportCatalogResponse:
    """Return the report catalog."""
    return AnalyticsService().catalog()


@router.get(
    "/reports/{name}",
    response_model=ReportPageResponse,
    summary="Compute a report",
    description="""
Compute one inventory report and return a page of its rows.

**Ordering**: Rows are returned in the report's documented order; ties in
descending orderings are broken by the natural keys ascending, so paging
through an unchanged dataset is stable.

**Rounding**: Numeric values are rounded half-up to `analytics_round_digits`
(default 2) decimals. Classifications are computed before rounding.

**Skipped groups**: A group whose row cannot be computed is dropped and counted
in `skipped_groups`; the rest of the report is still returned.

**Example Use Cases**:
1. Movement classes: `GET /analytics/reports/movement_classification`
2. Most urgent actions: `GET /analytics/reports/stock_recommendations?page_size=20`
""",
)
async def get_report(
    report: ReportName = Depends(get_report_name),
    page: int = Query(1, ge=1, description="Page number (1-indexed)."),
    page_size: int = Query(100, ge=1, le=1000, description="Rows per page."),
    snapshot: FactSnapshot = Depends(get_snapshot),
) -> ReportPageResponse:
    """Compute a report and return the requested page.

    Args:
        report: Report resolved from the path (see GET /analytics/reports).
        page: Page number.
        page_size: Rows per page.
        snapshot: Fact snapshot dependency.

    Returns:
        One page of report rows.

    Raises:
        NotFoundError: If the report name is unknown.
    """
    service = AnalyticsService()
    page_size = min(page_size, service.settings.analytics_max_page_size)
    return service.get_report_page(
        snapshot,
        report,
        PaginationParams(page=page, page_size=page_size),
    )
