"""Ingest service: staging rows -> validated star schema.

Staging rows (one denormalized line per store, region, product and day) are
split into the three dimensions and three facts. Validation happens here so
that analytics never sees a duplicate key or an unresolved reference.

Resolution rules:
- ``store_region_id`` is ``store_id + "_" + region``.
- Inventory keys must be unique; later duplicates are rejected.
- Products, seasonality labels, pricing and events keep the first row per
  key and silently ignore the rest (a conflicting seasonality label is logged).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from stocklens.core.config import get_settings
from stocklens.core.exceptions import ValidationError
from stocklens.core.logging import get_logger
from stocklens.features.data_platform.models import (
    EventRecord,
    InventoryRecord,
    PricingRecord,
    Product,
    Seasonality,
    Store,
    make_store_region_id,
)
from stocklens.features.data_platform.snapshot import (
    EVENT_COLUMNS,
    INVENTORY_COLUMNS,
    PRICING_COLUMNS,
    PRODUCT_COLUMNS,
    SEASONALITY_COLUMNS,
    STORE_COLUMNS,
    TABLE_LAYOUT,
    FactSnapshot,
)
from stocklens.features.ingest.schemas import STAGING_COLUMNS, IngestRowError, StagingRecord

logger = get_logger(__name__)

KEY_COLUMNS = ("record_date", "store_id", "product_id", "category", "region", "seasonality")
QUANTITY_COLUMNS = (
    "inventory_level",
    "units_sold",
    "units_ordered",
    "demand_forecast",
    "price",
    "discount",
    "competitor_pricing",
)
_TRUE_STRINGS = frozenset({"1", "true", "t", "yes", "y"})

# Insert order: dimensions before the facts that reference them
PERSIST_ORDER: tuple[tuple[str, Any], ...] = (
    ("stores", Store),
    ("products", Product),
    ("seasonality", Seasonality),
    ("inventory", InventoryRecord),
    ("pricing", PricingRecord),
    ("events", EventRecord),
)


@dataclass
class NormalizationResult:
    """Validated snapshot plus the staging rows that were rejected."""

    snapshot: FactSnapshot
    total_rows: int
    errors: list[IngestRowError] = field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.errors)

    @property
    def accepted_count(self) -> int:
        return self.total_rows - self.rejected_count


@dataclass
class PersistResult:
    """New rows written per table (existing keys are left untouched)."""

    inserted: dict[str, int] = field(default_factory=dict)

    @property
    def total_inserted(self) -> int:
        return sum(self.inserted.values())


# =============================================================================
# Staging Sources
# =============================================================================


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool | np.bool_):
        return bool(value)
    return str(value).strip().lower() in _TRUE_STRINGS


def read_staging_csv(path: str | Path) -> pd.DataFrame:
    """Read a staging CSV file.

    Columns are positional in STAGING_COLUMNS order; the header row is
    skipped whatever it says. Dates must be ``YYYY-MM-DD``; unparseable
    dates and numbers become nulls and are rejected by ``normalize_staging``.

    Args:
        path: CSV file path.

    Returns:
        Staging frame with STAGING_COLUMNS.

    Raises:
        ValidationError: If the file is missing, unparseable or has fewer
            columns than expected.
    """
    try:
        frame = pd.read_csv(path, header=0, dtype=str, keep_default_na=False, na_values=[""])
    except (
        FileNotFoundError,
        UnicodeDecodeError,
        pd.errors.EmptyDataError,
        pd.errors.ParserError,
    ) as e:
        raise ValidationError(
            message=f"Cannot read staging file: {path}",
            details={"path": str(path), "error": str(e)},
        ) from e
    if frame.shape[1] < len(STAGING_COLUMNS):
        raise ValidationError(
            message=f"Staging file must have {len(STAGING_COLUMNS)} columns",
            details={"path": str(path), "column_count": frame.shape[1]},
        )
    frame = frame.iloc[:, : len(STAGING_COLUMNS)].copy()
    frame.columns = pd.Index(STAGING_COLUMNS)

    frame["record_date"] = pd.to_datetime(frame["record_date"], format="%Y-%m-%d", errors="coerce")
    for col in QUANTITY_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce")
    frame["holiday_promotion"] = frame["holiday_promotion"].map(_parse_bool)

    logger.info("ingest.staging_csv_read", path=str(path), row_count=len(frame))
    return frame


def records_to_frame(records: list[StagingRecord]) -> pd.DataFrame:
    """Staging frame from validated API records, preserving their order."""
    return pd.DataFrame(
        [record.model_dump() for record in records],
        columns=STAGING_COLUMNS,
    )


# =============================================================================
# Normalization
# =============================================================================


def _row_error(
    row_index: int, row: pd.Series[Any], code: str, message: str
) -> IngestRowError:
    record_date = row.get("record_date")
    return IngestRowError(
        row_index=row_index,
        store_id=None if pd.isna(row.get("store_id")) else str(row["store_id"]),
        product_id=None if pd.isna(row.get("product_id")) else str(row["product_id"]),
        record_date=None if pd.isna(record_date) else pd.Timestamp(record_date).date(),
        error_code=code,
        error_message=message,
    )


def _invalid_columns(frame: pd.DataFrame) -> pd.Series[Any]:
    """Per row, the list of columns holding a missing or negative value."""
    problems = pd.DataFrame(index=frame.index)
    for col in KEY_COLUMNS:
        values = frame[col]
        blank = values.isna()
        if values.dtype == object:
            blank |= values.astype(str).str.strip().eq("")
        problems[col] = blank
    for col in QUANTITY_COLUMNS:
        problems[col] = frame[col].isna() | (frame[col] < 0)
    columns = list(problems.columns)
    return pd.Series(
        [
            [col for col, bad in zip(columns, flags, strict=True) if bad]
            for flags in problems.to_numpy()
        ],
        index=frame.index,
        dtype=object,
    )


def normalize_staging(frame: pd.DataFrame) -> NormalizationResult:
    """Split staging rows into a validated FactSnapshot.

    Args:
        frame: Staging rows with STAGING_COLUMNS, in source order.

    Returns:
        Snapshot of the accepted rows plus per-row errors for the rest.

    Raises:
        DataIntegrityError: If the resulting snapshot still violates an invariant.
    """
    frame = frame.reset_index(drop=True).copy()
    frame["record_date"] = pd.to_datetime(frame["record_date"], errors="coerce").dt.normalize()
    for col in QUANTITY_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce")

    errors: list[IngestRowError] = []

    invalid = _invalid_columns(frame)
    bad_mask = invalid.map(bool).astype(bool)
    for idx in frame.index[bad_mask]:
        errors.append(
            _row_error(
                int(idx),
                frame.loc[idx],
                "INVALID_VALUE",
                f"Missing or negative value in: {', '.join(invalid[idx])}",
            )
        )
    valid = frame.loc[~bad_mask].copy()

    for col in ("store_id", "product_id", "category", "region", "seasonality"):
        valid[col] = valid[col].astype(str).str.strip()
    valid["store_region_id"] = [
        make_store_region_id(store_id, region)
        for store_id, region in zip(valid["store_id"], valid["region"], strict=True)
    ]

    inventory_key = ["record_date", "store_region_id", "product_id"]
    dupes = valid.duplicated(subset=inventory_key, keep="first")
    for idx in valid.index[dupes]:
        row = valid.loc[idx]
        errors.append(
            _row_error(
                int(idx),
                row,
                "DUPLICATE_RECORD",
                f"Duplicate inventory record for {row['store_region_id']}/"
                f"{row['product_id']} on {row['record_date'].date()}",
            )
        )
    accepted = valid.loc[~dupes]

    labels = accepted.groupby("product_id")["seasonality"].nunique()
    conflicting = sorted(labels[labels > 1].index)
    if conflicting:
        logger.warning(
            "ingest.seasonality_conflict",
            product_count=len(conflicting),
            product_ids=conflicting[:10],
        )

    snapshot = FactSnapshot.from_frames(
        stores=accepted.drop_duplicates("store_region_id")[STORE_COLUMNS],
        products=accepted.drop_duplicates("product_id")[PRODUCT_COLUMNS],
        seasonality=accepted.drop_duplicates("product_id")[SEASONALITY_COLUMNS],
        inventory=accepted[INVENTORY_COLUMNS],
        pricing=accepted.drop_duplicates(TABLE_LAYOUT["pricing"][1])[PRICING_COLUMNS],
        events=accepted.drop_duplicates(TABLE_LAYOUT["events"][1])[EVENT_COLUMNS],
    )

    errors.sort(key=lambda error: error.row_index)
    logger.info(
        "ingest.staging_normalized",
        total_rows=len(frame),
        accepted=len(accepted),
        rejected=len(errors),
        **snapshot.summary(),
    )
    return NormalizationResult(snapshot=snapshot, total_rows=len(frame), errors=errors)


def load_csv_snapshot(path: str | Path) -> FactSnapshot:
    """Read and normalize a staging CSV into a snapshot, logging rejected rows."""
    result = normalize_staging(read_staging_csv(path))
    if result.errors:
        logger.warning(
            "ingest.staging_rows_rejected",
            path=str(path),
            rejected=result.rejected_count,
            first_error=result.errors[0].error_message,
        )
    return result.snapshot


@lru_cache(maxsize=4)
def _csv_snapshot_at(path: str, mtime_ns: int, size: int) -> FactSnapshot:
    return load_csv_snapshot(path)


def cached_csv_snapshot(path: str | Path) -> FactSnapshot:
    """Snapshot of a staging CSV, re-read only when the file changes.

    Snapshots are cached per (path, modification time, size). A missing or
    unreadable file is never cached and raises like ``load_csv_snapshot``.
    """
    path = str(path)
    try:
        stat = Path(path).stat()
    except OSError:
        return load_csv_snapshot(path)
    return _csv_snapshot_at(path, stat.st_mtime_ns, stat.st_size)


# =============================================================================
# Persistence
# =============================================================================


def _to_python(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    return value


def _table_rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    return [
        {str(col): _to_python(value) for col, value in record.items()}
        for record in frame.to_dict("records")
    ]


async def persist_snapshot(
    db: AsyncSession,
    snapshot: FactSnapshot,
    batch_size: int | None = None,
) -> PersistResult:
    """Write a snapshot into the star schema without touching existing keys.

    Uses PostgreSQL INSERT ... ON CONFLICT DO NOTHING per batch, dimensions
    first. Re-running with the same snapshot inserts nothing. The caller owns
    the transaction.

    Args:
        db: Async database session.
        snapshot: Validated snapshot.
        batch_size: Rows per INSERT statement (settings default).

    Returns:
        New row counts per table.
    """
    size = batch_size or get_settings().ingest_batch_size
    result = PersistResult()

    for name, model in PERSIST_ORDER:
        _, key = TABLE_LAYOUT[name]
        rows = _table_rows(snapshot.table(name))
        inserted = 0
        for start in range(0, len(rows), size):
            batch = rows[start : start + size]
            stmt = (
                pg_insert(model)
                .values(batch)
                .on_conflict_do_nothing(index_elements=key)
                .returning(getattr(model, key[0]))
            )
            db_result = await db.execute(stmt)
            inserted += len(db_result.fetchall())
        result.inserted[name] = inserted

    logger.info(
        "ingest.snapshot_persisted",
        total_inserted=result.total_inserted,
        **result.inserted,
    )
    return result
