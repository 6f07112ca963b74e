"""Immutable in-memory snapshot of the star schema.

Every report is a pure function of a FactSnapshot. The snapshot is built once
per run (from the database, a CSV file, or an ingest payload), validated
against the schema invariants, and then only ever read.

CRITICAL: Invariants are checked here, at load time. Analytics code assumes
keys are unique and references resolve, and never re-checks them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stocklens.core.exceptions import DataIntegrityError
from stocklens.core.logging import get_logger
from stocklens.features.data_platform.models import (
    EventRecord,
    InventoryRecord,
    PricingRecord,
    Product,
    Seasonality,
    Store,
)

logger = get_logger(__name__)

STORE_COLUMNS = ["store_region_id", "store_id", "region"]
PRODUCT_COLUMNS = ["product_id", "category"]
SEASONALITY_COLUMNS = ["product_id", "seasonality"]
INVENTORY_COLUMNS = [
    "record_date",
    "store_region_id",
    "product_id",
    "inventory_level",
    "units_sold",
    "units_ordered",
    "demand_forecast",
]
PRICING_COLUMNS = [
    "store_region_id",
    "product_id",
    "record_date",
    "price",
    "discount",
    "competitor_pricing",
]
EVENT_COLUMNS = ["store_region_id", "record_date", "weather_condition", "holiday_promotion"]

# table name -> (columns, primary key)
TABLE_LAYOUT: dict[str, tuple[list[str], list[str]]] = {
    "stores": (STORE_COLUMNS, ["store_region_id"]),
    "products": (PRODUCT_COLUMNS, ["product_id"]),
    "seasonality": (SEASONALITY_COLUMNS, ["product_id"]),
    "inventory": (INVENTORY_COLUMNS, ["record_date", "store_region_id", "product_id"]),
    "pricing": (PRICING_COLUMNS, ["store_region_id", "product_id", "record_date"]),
    "events": (EVENT_COLUMNS, ["store_region_id", "record_date"]),
}

_INT_COLUMNS = ("inventory_level", "units_sold", "units_ordered")
_FLOAT_COLUMNS = ("demand_forecast", "price", "discount", "competitor_pricing")


def _coerce(name: str, frame: pd.DataFrame) -> pd.DataFrame:
    """Copy a table into canonical column order and dtypes."""
    columns, _ = TABLE_LAYOUT[name]
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise DataIntegrityError(
            message=f"Table '{name}' is missing columns: {', '.join(missing)}",
            details={"table": name, "missing_columns": missing},
        )

    result = frame.loc[:, columns].copy()
    if "record_date" in result.columns:
        result["record_date"] = pd.to_datetime(result["record_date"]).dt.normalize()
    for col in _INT_COLUMNS:
        if col in result.columns:
            result[col] = result[col].astype("int64")
    for col in _FLOAT_COLUMNS:
        if col in result.columns:
            result[col] = result[col].astype("float64")
    if "holiday_promotion" in result.columns:
        result["holiday_promotion"] = result["holiday_promotion"].astype(bool)
    for col in ("store_region_id", "store_id", "region", "product_id", "category", "seasonality"):
        if col in result.columns:
            result[col] = result[col].astype(str)
    return result.reset_index(drop=True)


@dataclass(frozen=True)
class FactSnapshot:
    """Read-only view of the six star-schema tables as DataFrames.

    Use ``FactSnapshot.from_frames`` rather than the constructor so that
    dtypes are normalized and invariants are validated.

    Attributes:
        stores: Store dimension (store_region_id, store_id, region).
        products: Product dimension (product_id, category).
        seasonality: Seasonality label per product.
        inventory: Inventory facts, one row per store-region/product/day.
        pricing: Pricing facts keyed by store-region/product/day.
        events: Event facts keyed by store-region/day.
    """

    stores: pd.DataFrame
    products: pd.DataFrame
    seasonality: pd.DataFrame
    inventory: pd.DataFrame
    pricing: pd.DataFrame
    events: pd.DataFrame

    @classmethod
    def from_frames(
        cls,
        *,
        stores: pd.DataFrame,
        products: pd.DataFrame,
        seasonality: pd.DataFrame,
        inventory: pd.DataFrame,
        pricing: pd.DataFrame | None = None,
        events: pd.DataFrame | None = None,
    ) -> FactSnapshot:
        """Build a validated snapshot from raw frames.

        Args:
            stores: Store rows.
            products: Product rows.
            seasonality: Seasonality rows.
            inventory: Inventory fact rows.
            pricing: Pricing fact rows (empty when omitted).
            events: Event fact rows (empty when omitted).

        Returns:
            Validated snapshot.

        Raises:
            DataIntegrityError: If a key is duplicated, a reference does not
                resolve, or an inventory quantity is negative.
        """
        snapshot = cls(
            stores=_coerce("stores", stores),
            products=_coerce("products", products),
            seasonality=_coerce("seasonality", seasonality),
            inventory=_coerce("inventory", inventory),
            pricing=_coerce(
                "pricing", pricing if pricing is not None else pd.DataFrame(columns=PRICING_COLUMNS)
            ),
            events=_coerce(
                "events", events if events is not None else pd.DataFrame(columns=EVENT_COLUMNS)
            ),
        )
        snapshot.validate()
        return snapshot

    @classmethod
    def empty(cls) -> FactSnapshot:
        """Snapshot with no rows in any table."""
        return cls.from_frames(
            stores=pd.DataFrame(columns=STORE_COLUMNS),
            products=pd.DataFrame(columns=PRODUCT_COLUMNS),
            seasonality=pd.DataFrame(columns=SEASONALITY_COLUMNS),
            inventory=pd.DataFrame(columns=INVENTORY_COLUMNS),
        )

    def table(self, name: str) -> pd.DataFrame:
        """Return a table by its layout name."""
        if name not in TABLE_LAYOUT:
            raise KeyError(name)
        frame: pd.DataFrame = getattr(self, name)
        return frame

    def validate(self) -> None:
        """Check uniqueness, referential integrity and non-negative quantities.

        Raises:
            DataIntegrityError: With one entry per violated invariant in details.
        """
        violations: dict[str, Any] = {}

        for name, (_, key) in TABLE_LAYOUT.items():
            dupes = int(self.table(name).duplicated(subset=key).sum())
            if dupes:
                violations[f"{name}.duplicate_keys"] = dupes

        store_ids = set(self.stores["store_region_id"])
        product_ids = set(self.products["product_id"])
        references = [
            ("inventory", "store_region_id", store_ids),
            ("inventory", "product_id", product_ids),
            ("pricing", "store_region_id", store_ids),
            ("pricing", "product_id", product_ids),
            ("events", "store_region_id", store_ids),
            ("seasonality", "product_id", product_ids),
        ]
        for name, column, valid in references:
            unknown = sorted(set(self.table(name)[column]) - valid)
            if unknown:
                violations[f"{name}.unknown_{column}"] = unknown[:10]

        for col in _INT_COLUMNS + ("demand_forecast",):
            negative = int((self.inventory[col] < 0).sum())
            if negative:
                violations[f"inventory.negative_{col}"] = negative

        if violations:
            logger.warning("data_platform.snapshot_invalid", violations=violations)
            raise DataIntegrityError(
                message=f"Snapshot violates {len(violations)} integrity rule(s)",
                details=violations,
            )

    def summary(self) -> dict[str, int]:
        """Row counts per table, for logging."""
        return {name: len(self.table(name)) for name in TABLE_LAYOUT}


class FactSnapshotLoader:
    """Async loader reading the star schema into a FactSnapshot."""

    async def _read(self, db: AsyncSession, columns: list[Any]) -> pd.DataFrame:
        result = await db.execute(select(*columns))
        rows = result.all()
        names = [c.key for c in columns]
        return pd.DataFrame([tuple(row) for row in rows], columns=names)

    async def load(self, db: AsyncSession) -> FactSnapshot:
        """Load all six tables.

        Args:
            db: Async database session.

        Returns:
            Validated snapshot of the current database contents.
        """
        stores = await self._read(db, [Store.store_region_id, Store.store_id, Store.region])
        products = await self._read(db, [Product.product_id, Product.category])
        seasonality = await self._read(db, [Seasonality.product_id, Seasonality.seasonality])
        inventory = await self._read(
            db,
            [
                InventoryRecord.record_date,
                InventoryRecord.store_region_id,
                InventoryRecord.product_id,
                InventoryRecord.inventory_level,
                InventoryRecord.units_sold,
                InventoryRecord.units_ordered,
                InventoryRecord.demand_forecast,
            ],
        )
        pricing = await self._read(
            db,
            [
                PricingRecord.store_region_id,
                PricingRecord.product_id,
                PricingRecord.record_date,
                PricingRecord.price,
                PricingRecord.discount,
                PricingRecord.competitor_pricing,
            ],
        )
        events = await self._read(
            db,
            [
                EventRecord.store_region_id,
                EventRecord.record_date,
                EventRecord.weather_condition,
                EventRecord.holiday_promotion,
            ],
        )

        snapshot = FactSnapshot.from_frames(
            stores=stores,
            products=products,
            seasonality=seasonality,
            inventory=inventory,
            pricing=pricing,
            events=events,
        )
        logger.info("data_platform.snapshot_loaded", source="database", **snapshot.summary())
        return snapshot
