"""Ingest feature: staging rows into the validated star schema."""

from stocklens.features.ingest.routes import router
from stocklens.features.ingest.schemas import (
    IngestRowError,
    InventoryIngestRequest,
    InventoryIngestResponse,
    StagingRecord,
)
from stocklens.features.ingest.service import (
    NormalizationResult,
    PersistResult,
    cached_csv_snapshot,
    load_csv_snapshot,
    normalize_staging,
    persist_snapshot,
    read_staging_csv,
)

__all__ = [
    "IngestRowError",
    "InventoryIngestRequest",
    "InventoryIngestResponse",
    "NormalizationResult",
    "PersistResult",
    "StagingRecord",
    "cached_csv_snapshot",
    "load_csv_snapshot",
    "normalize_staging",
    "persist_snapshot",
    "read_staging_csv",
    "router",
]
