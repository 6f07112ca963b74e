"""Fixtures for analytics tests.

The ``snapshot`` fixture holds two store-region/product groups with
hand-checkable statistics:

- S1_North/P1 (Toys, Winter): 8 January days, inventory 20, units sold
  [2, 4, 4, 4, 5, 5, 7, 9] (mean 5, population stddev 2), forecast 5,
  priced every day at 10. One understock day (12.5%): fast-selling.
- S2_South/P2 (Food, Summer): 4 February days, inventory 100, 10 sold per
  day, forecast 30, priced on the first two days at 15. No understock
  days: slow-moving, holding cost 1500.
"""

from collections.abc import Callable
from typing import Any

import pandas as pd
import pytest

from stocklens.features.data_platform.snapshot import FactSnapshot

SnapshotFactory = Callable[..., FactSnapshot]


def _build_snapshot(
    inventory: list[dict[str, Any]],
    pricing: list[dict[str, Any]] | None = None,
    categories: dict[str, str] | None = None,
    seasonality: dict[str, str] | None = None,
) -> FactSnapshot:
    inventory_frame = pd.DataFrame(inventory)
    store_region_ids = sorted(inventory_frame["store_region_id"].unique())
    product_ids = sorted(inventory_frame["product_id"].unique())
    categories = categories or {}
    seasonality = seasonality or {}
    return FactSnapshot.from_frames(
        stores=pd.DataFrame(
            {
                "store_region_id": store_region_ids,
                "store_id": [sr.split("_", 1)[0] for sr in store_region_ids],
                "region": [sr.split("_", 1)[1] for sr in store_region_ids],
            }
        ),
        products=pd.DataFrame(
            {
                "product_id": product_ids,
                "category": [categories.get(p, "General") for p in product_ids],
            }
        ),
        seasonality=pd.DataFrame(
            {
                "product_id": list(seasonality),
                "seasonality": list(seasonality.values()),
            }
        ),
        inventory=inventory_frame,
        pricing=pd.DataFrame(pricing) if pricing else None,
    )


def inventory_rows(
    store_region_id: str,
    product_id: str,
    start: str,
    units_sold: list[int],
    inventory_level: int | list[int],
    demand_forecast: float,
) -> list[dict[str, Any]]:
    """One inventory row per consecutive day from ``start``."""
    dates = pd.date_range(start, periods=len(units_sold), freq="D")
    levels = (
        inventory_level
        if isinstance(inventory_level, list)
        else [inventory_level] * len(units_sold)
    )
    return [
        {
            "record_date": day,
            "store_region_id": store_region_id,
            "product_id": product_id,
            "inventory_level": level,
            "units_sold": sold,
            "units_ordered": 0,
            "demand_forecast": demand_forecast,
        }
        for day, sold, level in zip(dates, units_sold, levels, strict=True)
    ]


def pricing_rows(
    store_region_id: str,
    product_id: str,
    start: str,
    days: int,
    price: float,
    discount: float = 0.0,
    competitor_pricing: float | None = None,
) -> list[dict[str, Any]]:
    """One pricing row per consecutive day from ``start``."""
    return [
        {
            "store_region_id": store_region_id,
            "product_id": product_id,
            "record_date": day,
            "price": price,
            "discount": discount,
            "competitor_pricing": price if competitor_pricing is None else competitor_pricing,
        }
        for day in pd.date_range(start, periods=days, freq="D")
    ]


@pytest.fixture
def snapshot_factory() -> SnapshotFactory:
    """Factory building a validated snapshot from inventory/pricing row dicts."""
    return _build_snapshot


@pytest.fixture
def rows_for() -> Callable[..., list[dict[str, Any]]]:
    """Helper producing consecutive daily inventory rows."""
    return inventory_rows


@pytest.fixture
def prices_for() -> Callable[..., list[dict[str, Any]]]:
    """Helper producing consecutive daily pricing rows."""
    return pricing_rows


@pytest.fixture
def snapshot() -> FactSnapshot:
    """Two-group snapshot described in the module docstring."""
    return _build_snapshot(
        inventory=[
            *inventory_rows("S1_North", "P1", "2024-01-01", [2, 4, 4, 4, 5, 5, 7, 9], 20, 5.0),
            *inventory_rows("S2_South", "P2", "2024-02-01", [10, 10, 10, 10], 100, 30.0),
        ],
        pricing=[
            *pricing_rows("S1_North", "P1", "2024-01-01", 8, 10.0, 5.0, 11.0),
            *pricing_rows("S2_South", "P2", "2024-02-01", 2, 15.0, 0.0, 14.0),
        ],
        categories={"P1": "Toys", "P2": "Food"},
        seasonality={"P1": "Winter", "P2": "Summer"},
    )
