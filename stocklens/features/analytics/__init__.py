"""Inventory analytics: threshold classification, forecast evaluation and
stock recommendations computed from a FactSnapshot.

Every report is a pure function of the snapshot; see ``reports.REPORTS``.
"""

from stocklens.features.analytics.reports import REPORTS, ReportOutput, build_report
from stocklens.features.analytics.routes import router
from stocklens.features.analytics.schemas import (
    MovementRule,
    RecommendationPolicy,
    ReportCatalogResponse,
    ReportName,
    ReportPageResponse,
)
from stocklens.features.analytics.service import AnalyticsService, ReportResult

__all__ = [
    "REPORTS",
    "AnalyticsService",
    "MovementRule",
    "RecommendationPolicy",
    "ReportCatalogResponse",
    "ReportName",
    "ReportOutput",
    "ReportPageResponse",
    "ReportResult",
    "build_report",
    "router",
]
