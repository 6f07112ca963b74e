"""Threshold derivation and classification of daily inventory records.

Two strictly ordered phases per report:
1. Aggregate: group statistics -> ``threshold = avg_delta - k * stddev_delta``.
2. Classify: every record's delta is compared to its group's threshold,
   then flags are summarized back per group.

Scalar rules (movement class, reorder point, overstock, turnover) are plain
functions so each report applies them to unrounded values.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from stocklens.features.analytics.schemas import (
    OVERSTOCK_MULTIPLIER,
    REORDER_STDDEV_FACTOR,
    InventoryStatus,
    MovementRule,
    MovementType,
    StockStatus,
)
from stocklens.features.analytics.statistics import GROUP_KEYS, add_delta, group_statistics


def compute_thresholds(stats: pd.DataFrame, k: float) -> pd.DataFrame:
    """Add ``threshold = avg_delta - k * stddev_delta`` to a copy of group stats."""
    result = stats.copy()
    result["threshold"] = result["avg_delta"] - k * result["stddev_delta"]
    return result


def flag_records(
    inventory: pd.DataFrame,
    thresholds: pd.DataFrame,
    keys: Sequence[str] = GROUP_KEYS,
) -> pd.DataFrame:
    """Flag each record whose delta falls strictly below its group threshold.

    Args:
        inventory: Inventory facts carrying the ``keys`` columns.
        thresholds: Output of ``compute_thresholds`` for the same keys.
        keys: Group columns joining records to thresholds.

    Returns:
        Inventory copy with ``delta``, ``threshold`` and ``is_flagged`` (0/1).
    """
    keys = list(keys)
    frame = add_delta(inventory).merge(thresholds[[*keys, "threshold"]], on=keys, how="inner")
    frame["is_flagged"] = (frame["delta"] < frame["threshold"]).astype(int)
    return frame


def summarize_flags(flagged: pd.DataFrame, keys: Sequence[str]) -> pd.DataFrame:
    """Count flagged days per group.

    Returns:
        ``keys`` plus total_days, flagged_days and flagged_percentage
        (flagged_days / total_days * 100).
    """
    keys = list(keys)
    if flagged.empty:
        return pd.DataFrame(columns=[*keys, "total_days", "flagged_days", "flagged_percentage"])

    summary = (
        flagged.groupby(keys, sort=True, observed=True)
        .agg(total_days=("is_flagged", "size"), flagged_days=("is_flagged", "sum"))
        .reset_index()
    )
    summary["flagged_percentage"] = summary["flagged_days"] * 100.0 / summary["total_days"]
    return summary


def flag_summary(
    inventory: pd.DataFrame,
    k: float,
    keys: Sequence[str] = GROUP_KEYS,
) -> pd.DataFrame:
    """Group statistics joined with their flagged-day summary.

    Runs both phases: statistics and thresholds first, then per-record flags.
    """
    keys = list(keys)
    thresholds = compute_thresholds(group_statistics(inventory, keys), k)
    summary = summarize_flags(flag_records(inventory, thresholds, keys), keys)
    return thresholds.merge(summary, on=keys, how="inner")


def classify_movement(flagged_percentage: float, rule: MovementRule) -> MovementType:
    """Fast-selling when the flagged percentage is strictly above the rule's cut-off."""
    if flagged_percentage > rule.fast_above_pct:
        return MovementType.FAST_SELLING
    return MovementType.SLOW_MOVING


def stock_status(delta: float, threshold: float) -> StockStatus:
    """Understock when the day's delta is strictly below the threshold."""
    return StockStatus.UNDERSTOCK if delta < threshold else StockStatus.NORMAL


def reorder_point(
    avg_inventory: float,
    avg_sales: float,
    stddev_delta: float,
    is_fast: bool,
    stddev_factor: float = REORDER_STDDEV_FACTOR,
) -> float:
    """Inventory level at which restocking should start.

    Fast movers reorder at ``avg_inventory - avg_sales``; slow movers hold
    back a further ``stddev_factor`` deviations of the delta series.
    """
    base = avg_inventory - avg_sales
    if is_fast:
        return base
    return base - stddev_factor * stddev_delta


def inventory_status(inventory_level: float, reorder_level: float) -> InventoryStatus:
    """Low when inventory is at or below the reorder point."""
    if inventory_level <= reorder_level:
        return InventoryStatus.LOW
    return InventoryStatus.SUFFICIENT


def is_overstock(
    inventory_level: float,
    demand_forecast: float,
    multiplier: float = OVERSTOCK_MULTIPLIER,
) -> bool:
    """Overstocked when inventory is strictly above ``multiplier`` x forecast."""
    return inventory_level > multiplier * demand_forecast


def overstock_records(
    inventory: pd.DataFrame,
    multiplier: float = OVERSTOCK_MULTIPLIER,
) -> pd.DataFrame:
    """Records where inventory exceeds ``multiplier`` x demand forecast.

    Returns:
        Matching records with ``overstock_amount = inventory_level - demand_forecast``.
    """
    mask = inventory["inventory_level"] > multiplier * inventory["demand_forecast"]
    result = inventory.loc[mask].copy()
    result["overstock_amount"] = result["inventory_level"] - result["demand_forecast"]
    return result


def turnover_ratio(approx_cogs: float, avg_inventory: float) -> float | None:
    """COGS over average inventory; undefined (None) when inventory averages zero."""
    if avg_inventory == 0:
        return None
    return approx_cogs / avg_inventory


def product_turnover(inventory: pd.DataFrame, pricing: pd.DataFrame) -> pd.DataFrame:
    """Approximate COGS and average inventory per product.

    COGS is ``sum(units_sold * avg_price)`` where ``avg_price`` is the mean of
    every pricing row of the product across stores and days. Products without
    any pricing rows are excluded.

    Returns:
        Columns: product_id, approx_cogs, avg_inventory, inventory_turnover_ratio.
    """
    columns = ["product_id", "approx_cogs", "avg_inventory", "inventory_turnover_ratio"]
    avg_price = pricing.groupby("product_id", observed=True)["price"].mean().rename("avg_price")
    frame = inventory.merge(avg_price.reset_index(), on="product_id", how="inner")
    if frame.empty:
        return pd.DataFrame(columns=columns)

    frame["cogs"] = frame["units_sold"] * frame["avg_price"]
    result = (
        frame.groupby("product_id", sort=True, observed=True)
        .agg(approx_cogs=("cogs", "sum"), avg_inventory=("inventory_level", "mean"))
        .reset_index()
    )
    result["inventory_turnover_ratio"] = [
        turnover_ratio(cogs, avg_inv)
        for cogs, avg_inv in zip(result["approx_cogs"], result["avg_inventory"], strict=True)
    ]
    return result.loc[:, columns]
