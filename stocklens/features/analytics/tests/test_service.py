"""Tests for the analytics service."""

import pytest

from stocklens.core.exceptions import NotFoundError
from stocklens.features.analytics import service as service_module
from stocklens.features.analytics.reports import ReportOutput, build_report
from stocklens.features.analytics.schemas import ReportName, ReportStatus
from stocklens.features.analytics.service import AnalyticsService, resolve_report_name
from stocklens.shared.schemas import PaginationParams


class TestResolveReportName:
    """Tests for report name resolution."""

    def test_known_name(self):
        """Known names map to their enum."""
        assert resolve_report_name("kpi_summary") is ReportName.KPI_SUMMARY

    def test_unknown_name(self):
        """Unknown names raise NotFoundError listing the available reports."""
        with pytest.raises(NotFoundError) as exc_info:
            resolve_report_name("profit")

        assert exc_info.value.status_code == 404
        assert "stock_recommendations" in exc_info.value.details["available"]


class TestAnalyticsService:
    """Tests for AnalyticsService."""

    def test_catalog_lists_every_report(self):
        """The catalog describes all sixteen reports."""
        catalog = AnalyticsService().catalog()

        assert len(catalog.reports) == 16
        assert catalog.reports[0].name is ReportName.SALES_STATISTICS
        assert "movement_type" in catalog.reports[2].columns

    def test_round_digits_default_from_settings(self):
        """Without an override the settings precision is used."""
        assert AnalyticsService().round_digits == 2
        assert AnalyticsService(round_digits=0).round_digits == 0

    def test_run_report(self, snapshot):
        """A completed result carries ordered rows."""
        result = AnalyticsService().run_report(snapshot, ReportName.MOVEMENT_CLASSIFICATION)

        assert result.succeeded
        assert result.status is ReportStatus.COMPLETED
        assert len(result.rows) == 2
        assert result.duration_ms >= 0

    def test_records_are_json_ready(self, snapshot):
        """Records serialize enums and dates to plain values."""
        result = AnalyticsService().run_report(snapshot, ReportName.LOW_INVENTORY)

        record = result.records()[0]
        assert record["record_date"] == "2024-01-01"
        assert record["inventory_status"] == "Sufficient"

    def test_run_reports_defaults_to_all(self, snapshot):
        """All reports run in catalog order."""
        results = AnalyticsService().run_reports(snapshot)

        assert [result.name for result in results] == list(ReportName)
        assert all(result.succeeded for result in results)

    def test_run_reports_isolates_failures(self, snapshot, monkeypatch):
        """A failing report is recorded and later reports still run."""

        def fake_build_report(name, snap, digits=2):
            if name is ReportName.OVERSTOCK:
                raise RuntimeError("disk full")
            return build_report(name, snap, digits)

        monkeypatch.setattr(service_module, "build_report", fake_build_report)

        results = AnalyticsService().run_reports(
            snapshot,
            [ReportName.OVERSTOCK, ReportName.KPI_SUMMARY],
        )

        failed, completed = results
        assert failed.status is ReportStatus.FAILED
        assert failed.error_type == "RuntimeError"
        assert failed.error_message == "disk full"
        assert failed.rows == []
        assert completed.succeeded
        assert len(completed.rows) == 2

    def test_skipped_groups_reported(self, snapshot, monkeypatch):
        """Skipped group counts pass through to the result."""
        monkeypatch.setattr(
            service_module,
            "build_report",
            lambda name, snap, digits=2: ReportOutput(rows=[], skipped_groups=3),
        )

        result = AnalyticsService().run_report(snapshot, ReportName.KPI_SUMMARY)

        assert result.skipped_groups == 3

    def test_get_report_page(self, snapshot):
        """Pages slice the ordered rows."""
        page = AnalyticsService().get_report_page(
            snapshot,
            ReportName.OVERSTOCK,
            PaginationParams(page=2, page_size=5),
        )

        assert page.total == 12
        assert page.pages == 3
        assert len(page.items) == 5
        assert page.has_next is True
        assert page.items[0]["product_id"] == "P1"
        assert page.description.startswith("Days where inventory")
