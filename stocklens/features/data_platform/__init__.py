"""Data platform feature: star-schema ORM models and the in-memory fact snapshot.

- Dimension tables: Store, Product, Seasonality
- Fact tables: InventoryRecord, PricingRecord, EventRecord
- FactSnapshot: validated, read-only DataFrame view consumed by analytics
"""

from stocklens.features.data_platform.models import (
    EventRecord,
    InventoryRecord,
    PricingRecord,
    Product,
    Seasonality,
    Store,
    make_store_region_id,
)
from stocklens.features.data_platform.snapshot import FactSnapshot, FactSnapshotLoader

__all__ = [
    "EventRecord",
    "FactSnapshot",
    "FactSnapshotLoader",
    "InventoryRecord",
    "PricingRecord",
    "Product",
    "Seasonality",
    "Store",
    "make_store_region_id",
]
