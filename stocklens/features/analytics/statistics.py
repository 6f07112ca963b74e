"""Statistical aggregation over inventory history.

Produces read-only lookup frames keyed by group, built once per report and
merged into every downstream stage that needs them.

Conventions:
- ``delta`` is ``inventory_level - units_sold`` (the day's stock cushion).
- Standard deviations are population deviations (ddof=0). A single-record
  group therefore has stddev 0, and so does a zero-variance group.
- Medians use rank selection: average of ranks floor((n+1)/2) and ceil((n+1)/2).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
import pandas as pd

GROUP_KEYS = ["store_region_id", "product_id"]
REGION_KEYS = ["region", "product_id"]
SERIES_KEYS = ["store_region_id", "seasonality", "category"]

GROUP_STAT_COLUMNS = [
    "record_count",
    "avg_delta",
    "stddev_delta",
    "avg_inventory",
    "avg_sales",
    "stddev_sales",
    "median_sales",
    "avg_forecast",
    "total_inventory",
    "total_units_sold",
]


def population_std(values: pd.Series[float]) -> float:
    """Population standard deviation, 0 for fewer than two values."""
    array = values.to_numpy(dtype=float)
    if array.size < 2:
        return 0.0
    return float(np.std(array))


def median_by_rank(values: Iterable[float]) -> float:
    """Median via sort-and-index.

    Args:
        values: Observations (any order).

    Returns:
        Middle value for odd counts, mean of the two middle values for even counts.

    Raises:
        ValueError: If ``values`` is empty.

    Example:
        >>> median_by_rank([3, 7, 5])
        5.0
        >>> median_by_rank([3, 7, 5, 9])
        6.0
    """
    ordered = sorted(float(v) for v in values)
    n = len(ordered)
    if n == 0:
        raise ValueError("Median of an empty series is undefined")

    lower_rank = (n + 1) // 2  # floor((n + 1) / 2), 1-based
    upper_rank = n // 2 + 1  # ceil((n + 1) / 2), 1-based
    return (ordered[lower_rank - 1] + ordered[upper_rank - 1]) / 2


def add_delta(inventory: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of the inventory facts with a ``delta`` column."""
    result = inventory.copy()
    result["delta"] = result["inventory_level"] - result["units_sold"]
    return result


def group_statistics(
    inventory: pd.DataFrame,
    keys: Sequence[str] = GROUP_KEYS,
) -> pd.DataFrame:
    """Summary statistics of inventory history per group.

    Args:
        inventory: Inventory facts (must contain every column in ``keys``).
        keys: Grouping columns; defaults to (store_region_id, product_id).

    Returns:
        One row per group with ``keys`` plus GROUP_STAT_COLUMNS, sorted by keys.
    """
    keys = list(keys)
    if inventory.empty:
        return pd.DataFrame(columns=[*keys, *GROUP_STAT_COLUMNS])

    frame = add_delta(inventory)
    stats = (
        frame.groupby(keys, sort=True, observed=True)
        .agg(
            record_count=("delta", "size"),
            avg_delta=("delta", "mean"),
            stddev_delta=("delta", population_std),
            avg_inventory=("inventory_level", "mean"),
            avg_sales=("units_sold", "mean"),
            stddev_sales=("units_sold", population_std),
            median_sales=("units_sold", median_by_rank),
            avg_forecast=("demand_forecast", "mean"),
            total_inventory=("inventory_level", "sum"),
            total_units_sold=("units_sold", "sum"),
        )
        .reset_index()
    )
    # Undefined deviations must never leak into thresholds
    stats[["stddev_delta", "stddev_sales"]] = stats[["stddev_delta", "stddev_sales"]].fillna(0.0)
    return stats


def attach_region(inventory: pd.DataFrame, stores: pd.DataFrame) -> pd.DataFrame:
    """Inventory facts with the store's region column joined on."""
    return inventory.merge(stores[["store_region_id", "region"]], on="store_region_id")


def region_product_statistics(inventory: pd.DataFrame, stores: pd.DataFrame) -> pd.DataFrame:
    """Group statistics keyed by (region, product_id), ignoring the store."""
    return group_statistics(attach_region(inventory, stores), keys=REGION_KEYS)


def monthly_totals(
    inventory: pd.DataFrame,
    products: pd.DataFrame,
    seasonality: pd.DataFrame,
) -> pd.DataFrame:
    """Monthly sales and forecast totals per seasonal series.

    Months are calendar month numbers; the same month of different years
    falls into one bucket.

    Returns:
        Columns: store_region_id, seasonality, category, month_num, month_name,
        total_sales, total_forecast, data_points; sorted by series then month.
    """
    columns = [
        *SERIES_KEYS,
        "month_num",
        "month_name",
        "total_sales",
        "total_forecast",
        "data_points",
    ]
    frame = inventory.merge(products, on="product_id").merge(seasonality, on="product_id")
    if frame.empty:
        return pd.DataFrame(columns=columns)

    frame["month_num"] = frame["record_date"].dt.month
    frame["month_name"] = frame["record_date"].dt.month_name()
    monthly = (
        frame.groupby([*SERIES_KEYS, "month_num", "month_name"], sort=True, observed=True)
        .agg(
            total_sales=("units_sold", "sum"),
            total_forecast=("demand_forecast", "sum"),
            data_points=("units_sold", "size"),
        )
        .reset_index()
    )
    return monthly.loc[:, columns]


def series_statistics(
    monthly: pd.DataFrame,
    keys: Sequence[str] = SERIES_KEYS,
) -> pd.DataFrame:
    """Average, extremes and volatility of monthly totals per series."""
    keys = list(keys)
    columns = [
        "avg_monthly_sales",
        "peak_sales",
        "trough_sales",
        "sales_volatility",
        "avg_monthly_forecast",
        "peak_forecast",
        "trough_forecast",
        "forecast_volatility",
    ]
    if monthly.empty:
        return pd.DataFrame(columns=[*keys, *columns])

    return (
        monthly.groupby(keys, sort=True, observed=True)
        .agg(
            avg_monthly_sales=("total_sales", "mean"),
            peak_sales=("total_sales", "max"),
            trough_sales=("total_sales", "min"),
            sales_volatility=("total_sales", population_std),
            avg_monthly_forecast=("total_forecast", "mean"),
            peak_forecast=("total_forecast", "max"),
            trough_forecast=("total_forecast", "min"),
            forecast_volatility=("total_forecast", population_std),
        )
        .reset_index()
    )
