"""Service layer for the inventory analytics workload.

Reports run one after another over a single immutable snapshot. A report
that fails is recorded as failed and the remaining reports still run.
"""

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from stocklens.core.config import get_settings
from stocklens.core.exceptions import NotFoundError
from stocklens.core.logging import get_logger, report_context
from stocklens.features.analytics.reports import REPORTS, build_report
from stocklens.features.analytics.schemas import (
    ReportCatalogResponse,
    ReportInfo,
    ReportName,
    ReportPageResponse,
    ReportRow,
    ReportStatus,
)
from stocklens.features.data_platform.snapshot import FactSnapshot
from stocklens.shared.schemas import PaginationParams
from stocklens.shared.utils import paginate_rows

logger = get_logger(__name__)


@dataclass
class ReportResult:
    """Outcome of running one report.

    Attributes:
        name: Report that was run.
        status: Completed or failed.
        rows: Ordered rows (empty when failed).
        skipped_groups: Groups dropped during materialization.
        error_message: Failure message, if any.
        error_type: Exception class name, if any.
        duration_ms: Wall time spent building the report.
    """

    name: ReportName
    status: ReportStatus
    rows: list[ReportRow] = field(default_factory=list)
    skipped_groups: int = 0
    error_message: str | None = None
    error_type: str | None = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == ReportStatus.COMPLETED

    def records(self) -> list[dict[str, Any]]:
        """Rows as JSON-compatible dicts, in report order."""
        return [row.model_dump(mode="json") for row in self.rows]


def resolve_report_name(name: str) -> ReportName:
    """Map a report name string to its enum.

    Raises:
        NotFoundError: If no report has that name.
    """
    try:
        return ReportName(name)
    except ValueError as e:
        raise NotFoundError(
            message=f"Unknown report: {name}",
            details={"report": name, "available": [r.value for r in ReportName]},
        ) from e


class AnalyticsService:
    """Runs inventory reports over a FactSnapshot."""

    def __init__(self, round_digits: int | None = None) -> None:
        """Initialize analytics service.

        Args:
            round_digits: Decimal places for emitted floats (settings default).
        """
        self.settings = get_settings()
        self.round_digits = (
            round_digits if round_digits is not None else self.settings.analytics_round_digits
        )

    def catalog(self) -> ReportCatalogResponse:
        """Describe every available report."""
        return ReportCatalogResponse(
            reports=[
                ReportInfo(
                    name=definition.name,
                    description=definition.description,
                    columns=definition.columns,
                )
                for definition in REPORTS.values()
            ]
        )

    def run_report(self, snapshot: FactSnapshot, name: ReportName) -> ReportResult:
        """Build one report.

        Args:
            snapshot: Validated fact snapshot.
            name: Report to build.

        Returns:
            Completed result with ordered rows.
        """
        start_time = time.perf_counter()
        with report_context(name.value):
            output = build_report(name, snapshot, digits=self.round_digits)
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "analytics.report_completed",
            report=name.value,
            row_count=len(output.rows),
            skipped_groups=output.skipped_groups,
            duration_ms=round(duration_ms, 2),
        )
        return ReportResult(
            name=name,
            status=ReportStatus.COMPLETED,
            rows=output.rows,
            skipped_groups=output.skipped_groups,
            duration_ms=duration_ms,
        )

    def run_reports(
        self,
        snapshot: FactSnapshot,
        names: Iterable[ReportName] | None = None,
    ) -> list[ReportResult]:
        """Run several reports in sequence, isolating failures.

        Args:
            snapshot: Validated fact snapshot.
            names: Reports to run (all reports when omitted), in run order.

        Returns:
            One result per requested report, in the same order.
        """
        selected = list(names) if names is not None else list(ReportName)
        logger.info("analytics.run_started", report_count=len(selected), **snapshot.summary())

        results: list[ReportResult] = []
        for name in selected:
            try:
                results.append(self.run_report(snapshot, name))
            except Exception as e:
                logger.error(
                    "analytics.report_failed",
                    report=name.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                results.append(
                    ReportResult(
                        name=name,
                        status=ReportStatus.FAILED,
                        error_message=str(e),
                        error_type=type(e).__name__,
                    )
                )

        failed = sum(1 for result in results if not result.succeeded)
        logger.info(
            "analytics.run_completed",
            report_count=len(results),
            failed_count=failed,
        )
        return results

    def get_report_page(
        self,
        snapshot: FactSnapshot,
        name: ReportName,
        pagination: PaginationParams,
    ) -> ReportPageResponse:
        """Build a report and return one page of its rows.

        Args:
            snapshot: Validated fact snapshot.
            name: Report to build.
            pagination: Requested page.

        Returns:
            Page of JSON-compatible rows with totals.
        """
        result = self.run_report(snapshot, name)
        page = paginate_rows(result.records(), pagination)
        return ReportPageResponse(
            report=name,
            description=REPORTS[name].description,
            items=page.items,
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            pages=page.pages,
            skipped_groups=result.skipped_groups,
        )
