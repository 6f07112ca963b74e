"""Report builders: pure functions from a FactSnapshot to ordered rows.

Each builder aggregates first, then classifies per record or per group using
unrounded values. Numbers are rounded only when a row is emitted.

A row that cannot be materialized (undefined arithmetic, failed validation)
is logged as ``analytics.group_skipped`` and dropped; the rest of the report
is unaffected.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, cast

import numpy as np
import pandas as pd

from stocklens.core.logging import get_logger
from stocklens.features.analytics.classification import (
    classify_movement,
    compute_thresholds,
    flag_records,
    flag_summary,
    inventory_status,
    overstock_records,
    product_turnover,
    reorder_point,
    stock_status,
    summarize_flags,
)
from stocklens.features.analytics.forecasting import (
    absolute_error,
    absolute_percentage_error,
    accuracy_rating,
    add_previous_month,
    forecast_bias,
    forecast_performance,
    region_performance,
    sales_performance,
    trend_prediction,
    variance_from_average,
)
from stocklens.features.analytics.recommendations import (
    DEFAULT_POLICY,
    StockPosition,
    decide,
    optimal_stock_level,
    safety_stock,
)
from stocklens.features.analytics.schemas import (
    FORECAST_GOOD_ERROR_UNITS,
    LOW_INVENTORY_RULE,
    MOVEMENT_RULE,
    REORDER_BRANCH_RULE,
    STOCKOUT_THRESHOLD_K,
    CategorySummaryRow,
    CompetitorPricingRow,
    DiscountImpactRow,
    ForecastAccuracyRow,
    ForecastQuality,
    InventoryTurnoverRow,
    KPISummaryRow,
    LowInventoryRow,
    MovementClassificationRow,
    MovementType,
    OverstockRow,
    RecommendationPolicy,
    RegionalSummaryRow,
    ReorderPointRow,
    ReportName,
    ReportRow,
    SalesStatisticsRow,
    SeasonalForecastRow,
    StockLevelRow,
    StockRecommendationRow,
    StorePerformance,
    StoreStockoutRow,
)
from stocklens.features.analytics.statistics import (
    GROUP_KEYS,
    SERIES_KEYS,
    attach_region,
    group_statistics,
    monthly_totals,
    region_product_statistics,
    series_statistics,
)
from stocklens.features.data_platform.snapshot import FactSnapshot
from stocklens.shared.utils import round_half_up

logger = get_logger(__name__)

Record = Mapping[str, Any]

# Columns identifying a group in skip logs, in display order
_GROUP_LABEL_COLUMNS = (
    "record_date",
    "region",
    "store_region_id",
    "product_id",
    "category",
    "seasonality",
    "month_num",
)


@dataclass
class ReportOutput:
    """Materialized rows of one report plus the number of dropped groups."""

    rows: list[ReportRow] = field(default_factory=list)
    skipped_groups: int = 0


# =============================================================================
# Materialization
# =============================================================================


def _emit(value: Any, digits: int) -> Any:
    """Convert a pandas/numpy value to a plain Python value, rounding floats."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if np.isnan(value):
            return None
        return round_half_up(value, digits)
    return value


def _group_label(record: Record) -> dict[str, str]:
    return {col: str(record[col]) for col in _GROUP_LABEL_COLUMNS if col in record}


def _materialize(
    report: ReportName,
    model: type[ReportRow],
    records: Iterable[Record],
    convert: Callable[[Record], Record],
    digits: int,
) -> ReportOutput:
    """Build validated rows one group at a time.

    Args:
        report: Report being built (for logging).
        model: Row model to validate against.
        records: Aggregated records in output order.
        convert: Maps an aggregated record to row field values (unrounded).
        digits: Decimal places for emitted floats.

    Returns:
        ReportOutput with every row that could be built.
    """
    output = ReportOutput()
    for record in records:
        try:
            values = {name: _emit(value, digits) for name, value in convert(record).items()}
            output.rows.append(model.model_validate(values))
        except (ValueError, TypeError, ArithmeticError) as exc:
            # pydantic.ValidationError is a ValueError
            output.skipped_groups += 1
            logger.warning(
                "analytics.group_skipped",
                report=report.value,
                group=_group_label(record),
                error=str(exc),
                error_type=type(exc).__name__,
            )
    return output


def _order(
    frame: pd.DataFrame,
    by: Sequence[str],
    descending: Sequence[str] = (),
) -> list[dict[str, Any]]:
    """Stable sort (descending columns first as listed) with nulls last, as records."""
    if frame.empty:
        return []
    ordered = frame.sort_values(
        list(by),
        ascending=[col not in descending for col in by],
        kind="mergesort",
        na_position="last",
    )
    records: list[dict[str, Any]] = ordered.to_dict("records")
    return records


def _priced(snapshot: FactSnapshot) -> pd.DataFrame:
    """Inventory records joined with the pricing row of the same store, product and day."""
    return snapshot.inventory.merge(
        snapshot.pricing, on=[*GROUP_KEYS, "record_date"], how="inner"
    ).merge(snapshot.products, on="product_id", how="inner")


# =============================================================================
# Builders
# =============================================================================


def build_sales_statistics(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Average, median and standard deviation of daily units sold per store and product."""
    stats = group_statistics(snapshot.inventory)

    def convert(r: Record) -> Record:
        return {
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "avg_sales": r["avg_sales"],
            "median_sales": r["median_sales"],
            "stddev_sales": r["stddev_sales"],
        }

    records = _order(stats, GROUP_KEYS)
    return _materialize(
        ReportName.SALES_STATISTICS, SalesStatisticsRow, records, convert, digits
    )


def build_stock_levels(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Daily stock level classified as Understock/Normal against the k=1 threshold."""
    thresholds = compute_thresholds(group_statistics(snapshot.inventory), STOCKOUT_THRESHOLD_K)
    flagged = flag_records(snapshot.inventory, thresholds).merge(snapshot.products, on="product_id")

    def convert(r: Record) -> Record:
        return {
            "record_date": r["record_date"],
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "category": r["category"],
            "stock_level": r["delta"],
            "threshold": r["threshold"],
            "stock_status": stock_status(r["delta"], r["threshold"]),
        }

    records = _order(flagged, [*GROUP_KEYS, "record_date"])
    return _materialize(ReportName.STOCK_LEVELS, StockLevelRow, records, convert, digits)


def build_movement_classification(
    snapshot: FactSnapshot, digits: int = 2
) -> ReportOutput:
    """Understock frequency per store and product, classified fast or slow."""
    summary = flag_summary(snapshot.inventory, MOVEMENT_RULE.threshold_k)

    def convert(r: Record) -> Record:
        return {
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "understock_days": r["flagged_days"],
            "total_days": r["total_days"],
            "understock_percentage": r["flagged_percentage"],
            "movement_type": classify_movement(r["flagged_percentage"], MOVEMENT_RULE),
        }

    records = _order(
        summary, ["flagged_percentage", *GROUP_KEYS], descending=["flagged_percentage"]
    )
    return _materialize(
        ReportName.MOVEMENT_CLASSIFICATION, MovementClassificationRow, records, convert, digits
    )


def build_overstock(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Days where inventory exceeded twice the demand forecast."""
    overstock = overstock_records(snapshot.inventory)

    def convert(r: Record) -> Record:
        return {
            "record_date": r["record_date"],
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "inventory_level": r["inventory_level"],
            "demand_forecast": r["demand_forecast"],
            "overstock_amount": r["overstock_amount"],
        }

    records = _order(
        overstock,
        ["overstock_amount", "record_date", *GROUP_KEYS],
        descending=["overstock_amount"],
    )
    return _materialize(ReportName.OVERSTOCK, OverstockRow, records, convert, digits)


def build_category_summary(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Average inventory, units sold and forecast volume per category."""
    frame = snapshot.inventory.merge(snapshot.products, on="product_id")
    if frame.empty:
        return ReportOutput()
    summary = (
        frame.groupby("category", sort=True)
        .agg(
            avg_inventory=("inventory_level", "mean"),
            total_units_sold=("units_sold", "sum"),
            total_forecast=("demand_forecast", "sum"),
        )
        .reset_index()
    )

    def convert(r: Record) -> Record:
        return dict(r)

    records = _order(summary, ["category"])
    return _materialize(
        ReportName.CATEGORY_SUMMARY, CategorySummaryRow, records, convert, digits
    )


def build_forecast_accuracy(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Average forecast against average sales with quality, rating and bias labels."""
    stats = group_statistics(snapshot.inventory).merge(snapshot.products, on="product_id")
    stats["avg_forecast_error"] = (stats["avg_sales"] - stats["avg_forecast"]).abs()

    def convert(r: Record) -> Record:
        actual, forecast = r["avg_sales"], r["avg_forecast"]
        error = absolute_error(actual, forecast)
        pct = absolute_percentage_error(actual, forecast)
        return {
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "category": r["category"],
            "avg_forecast": forecast,
            "avg_actual_sales": actual,
            "avg_forecast_error": error,
            "forecast_quality": (
                ForecastQuality.GOOD if error < FORECAST_GOOD_ERROR_UNITS else ForecastQuality.POOR
            ),
            "absolute_percentage_error": pct,
            "accuracy_rating": accuracy_rating(pct),
            "forecast_bias": forecast_bias(actual, forecast),
        }

    records = _order(
        stats, ["avg_forecast_error", *GROUP_KEYS], descending=["avg_forecast_error"]
    )
    return _materialize(
        ReportName.FORECAST_ACCURACY, ForecastAccuracyRow, records, convert, digits
    )


def build_competitor_pricing(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Own price against competitor price per product (same-day pricing only)."""
    priced = _priced(snapshot)
    if priced.empty:
        return ReportOutput()
    summary = (
        priced.groupby(["product_id", "category"], sort=True)
        .agg(
            avg_competitor_price=("competitor_pricing", "mean"),
            avg_price=("price", "mean"),
            avg_units_sold=("units_sold", "mean"),
        )
        .reset_index()
    )

    def convert(r: Record) -> Record:
        return {
            "product_id": r["product_id"],
            "category": r["category"],
            "avg_competitor_price": r["avg_competitor_price"],
            "price_difference": r["avg_price"] - r["avg_competitor_price"],
            "avg_units_sold": r["avg_units_sold"],
        }

    records = _order(
        summary,
        ["avg_competitor_price", "product_id", "category"],
        descending=["avg_competitor_price"],
    )
    return _materialize(
        ReportName.COMPETITOR_PRICING, CompetitorPricingRow, records, convert, digits
    )


def build_store_stockout_rates(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Stockout rate per store benchmarked against the mean rate of all stores."""
    thresholds = compute_thresholds(group_statistics(snapshot.inventory), STOCKOUT_THRESHOLD_K)
    flagged = flag_records(snapshot.inventory, thresholds)
    per_store = summarize_flags(flagged, ["store_region_id"])
    if per_store.empty:
        return ReportOutput()
    overall = float(per_store["flagged_percentage"].mean())

    def convert(r: Record) -> Record:
        rate = r["flagged_percentage"]
        return {
            "store_region_id": r["store_region_id"],
            "stockout_days": r["flagged_days"],
            "total_days": r["total_days"],
            "stockout_rate_percentage": rate,
            "overall_avg_stockout_rate": overall,
            "store_performance": (
                StorePerformance.GOOD if rate < overall else StorePerformance.POOR
            ),
        }

    records = _order(
        per_store,
        ["flagged_percentage", "store_region_id"],
        descending=["flagged_percentage"],
    )
    return _materialize(
        ReportName.STORE_STOCKOUT_RATES, StoreStockoutRow, records, convert, digits
    )


def build_discount_impact(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Average discount against average units sold per product."""
    priced = _priced(snapshot)
    if priced.empty:
        return ReportOutput()
    summary = (
        priced.groupby(["product_id", "category"], sort=True)
        .agg(avg_discount=("discount", "mean"), avg_units_sold=("units_sold", "mean"))
        .reset_index()
    )

    def convert(r: Record) -> Record:
        return dict(r)

    records = _order(
        summary, ["avg_discount", "product_id", "category"], descending=["avg_discount"]
    )
    return _materialize(ReportName.DISCOUNT_IMPACT, DiscountImpactRow, records, convert, digits)


def build_reorder_points(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Reorder point per store and product.

    The movement label uses the >10% cut-off while the reorder formula
    branches at >5%; a group between the two is labelled slow but reorders
    like a fast mover.
    """
    summary = flag_summary(snapshot.inventory, MOVEMENT_RULE.threshold_k).merge(
        snapshot.products, on="product_id"
    )

    def convert(r: Record) -> Record:
        pct = r["flagged_percentage"]
        branch = classify_movement(pct, REORDER_BRANCH_RULE)
        return {
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "category": r["category"],
            "movement_type": classify_movement(pct, MOVEMENT_RULE),
            "reorder_point": reorder_point(
                r["avg_inventory"],
                r["avg_sales"],
                r["stddev_delta"],
                is_fast=branch is MovementType.FAST_SELLING,
            ),
            "avg_inventory": r["avg_inventory"],
            "avg_sales": r["avg_sales"],
            "stddev_delta": r["stddev_delta"],
            "understock_days": r["flagged_days"],
            "total_days": r["total_days"],
            "understock_percentage": pct,
        }

    records = _order(summary, GROUP_KEYS)
    return _materialize(ReportName.REORDER_POINTS, ReorderPointRow, records, convert, digits)


def build_low_inventory(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Daily inventory compared with the group reorder point (k=1.0, fast above 5%)."""
    summary = flag_summary(snapshot.inventory, LOW_INVENTORY_RULE.threshold_k)
    if summary.empty:
        return ReportOutput()
    summary["reorder_point"] = [
        reorder_point(
            avg_inv,
            avg_sales,
            stddev_delta,
            is_fast=classify_movement(pct, LOW_INVENTORY_RULE) is MovementType.FAST_SELLING,
        )
        for avg_inv, avg_sales, stddev_delta, pct in zip(
            summary["avg_inventory"],
            summary["avg_sales"],
            summary["stddev_delta"],
            summary["flagged_percentage"],
            strict=True,
        )
    ]
    frame = snapshot.inventory.merge(
        summary[[*GROUP_KEYS, "reorder_point"]], on=GROUP_KEYS
    ).merge(snapshot.products, on="product_id")

    def convert(r: Record) -> Record:
        return {
            "record_date": r["record_date"],
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "category": r["category"],
            "inventory_level": r["inventory_level"],
            "reorder_point": r["reorder_point"],
            "inventory_status": inventory_status(r["inventory_level"], r["reorder_point"]),
        }

    records = _order(frame, ["record_date", *GROUP_KEYS])
    return _materialize(ReportName.LOW_INVENTORY, LowInventoryRow, records, convert, digits)


def build_inventory_turnover(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Approximate COGS over average inventory per product, highest first, nulls last."""
    turnover = product_turnover(snapshot.inventory, snapshot.pricing).merge(
        snapshot.products, on="product_id"
    )

    def convert(r: Record) -> Record:
        return {
            "product_id": r["product_id"],
            "category": r["category"],
            "approx_cogs": r["approx_cogs"],
            "avg_inventory": r["avg_inventory"],
            "inventory_turnover_ratio": r["inventory_turnover_ratio"],
        }

    records = _order(
        turnover,
        ["inventory_turnover_ratio", "product_id"],
        descending=["inventory_turnover_ratio"],
    )
    return _materialize(
        ReportName.INVENTORY_TURNOVER, InventoryTurnoverRow, records, convert, digits
    )


def build_regional_summary(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Volumes per region plus a stockout rate from (region, product) thresholds."""
    regional = attach_region(snapshot.inventory, snapshot.stores)
    if regional.empty:
        return ReportOutput()
    volumes = (
        regional.groupby("region", sort=True)
        .agg(
            distinct_products=("product_id", "nunique"),
            total_inventory=("inventory_level", "sum"),
            total_units_sold=("units_sold", "sum"),
            avg_inventory_per_product=("inventory_level", "mean"),
            avg_sales_per_product=("units_sold", "mean"),
        )
        .reset_index()
    )
    thresholds = compute_thresholds(
        region_product_statistics(snapshot.inventory, snapshot.stores), STOCKOUT_THRESHOLD_K
    )
    flagged = flag_records(regional, thresholds, keys=["region", "product_id"])
    stockouts = summarize_flags(flagged, ["region"])
    frame = volumes.merge(stockouts, on="region")

    def convert(r: Record) -> Record:
        return {
            "region": r["region"],
            "distinct_products": r["distinct_products"],
            "total_inventory": r["total_inventory"],
            "total_units_sold": r["total_units_sold"],
            "avg_inventory_per_product": r["avg_inventory_per_product"],
            "avg_sales_per_product": r["avg_sales_per_product"],
            "total_stockout_days": r["flagged_days"],
            "total_records": r["total_days"],
            "stockout_rate_percentage": r["flagged_percentage"],
        }

    records = _order(frame, ["region"])
    return _materialize(
        ReportName.REGIONAL_SUMMARY, RegionalSummaryRow, records, convert, digits
    )


def build_kpi_summary(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Stockout rate, average inventory, average sales and inventory age per group."""
    summary = flag_summary(snapshot.inventory, STOCKOUT_THRESHOLD_K).merge(
        snapshot.products, on="product_id"
    )

    def convert(r: Record) -> Record:
        avg_sales = r["avg_sales"]
        return {
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "category": r["category"],
            "total_days": r["total_days"],
            "stockout_days": r["flagged_days"],
            "stockout_rate_percentage": r["flagged_percentage"],
            "avg_inventory_level": r["avg_inventory"],
            "avg_daily_sales": avg_sales,
            "estimated_inventory_age_days": (
                r["avg_inventory"] / avg_sales if avg_sales > 0 else None
            ),
        }

    records = _order(summary, GROUP_KEYS)
    return _materialize(ReportName.KPI_SUMMARY, KPISummaryRow, records, convert, digits)


def build_seasonal_forecast(snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Monthly sales against forecast within each (store, seasonality, category) series."""
    monthly = monthly_totals(snapshot.inventory, snapshot.products, snapshot.seasonality)
    if monthly.empty:
        return ReportOutput()
    series = series_statistics(monthly)
    frame = add_previous_month(monthly).merge(series, on=SERIES_KEYS)

    def convert(r: Record) -> Record:
        sales, forecast = r["total_sales"], r["total_forecast"]
        pct = absolute_percentage_error(sales, forecast)
        previous = r["previous_sales"]
        return {
            "store_region_id": r["store_region_id"],
            "category": r["category"],
            "seasonality": r["seasonality"],
            "month_num": r["month_num"],
            "month_name": r["month_name"],
            "total_sales": sales,
            "total_forecast": forecast,
            "avg_monthly_sales": r["avg_monthly_sales"],
            "avg_monthly_forecast": r["avg_monthly_forecast"],
            "peak_sales": r["peak_sales"],
            "peak_forecast": r["peak_forecast"],
            "trough_sales": r["trough_sales"],
            "trough_forecast": r["trough_forecast"],
            "sales_volatility": r["sales_volatility"],
            "forecast_volatility": r["forecast_volatility"],
            "absolute_forecast_error": absolute_error(sales, forecast),
            "absolute_percentage_error": pct,
            "sales_performance_category": sales_performance(
                sales, r["peak_sales"], r["trough_sales"], r["avg_monthly_sales"]
            ),
            "forecast_performance_category": forecast_performance(
                forecast, r["peak_forecast"], r["trough_forecast"], r["avg_monthly_forecast"]
            ),
            "sales_variance_from_average": variance_from_average(sales, r["avg_monthly_sales"]),
            "forecast_variance_from_average": variance_from_average(
                forecast, r["avg_monthly_forecast"]
            ),
            "forecast_accuracy_rating": accuracy_rating(pct),
            "forecast_bias": forecast_bias(sales, forecast),
            "region_performance_rating": region_performance(sales, r["avg_monthly_sales"]),
            "trend_based_next_month_prediction": trend_prediction(
                sales, None if pd.isna(previous) else previous
            ),
        }

    records = _order(frame, [*SERIES_KEYS, "month_num"])
    return _materialize(
        ReportName.SEASONAL_FORECAST, SeasonalForecastRow, records, convert, digits
    )


def _recommendation_order(row: ReportRow) -> tuple[int, float, str, str]:
    rec = cast(StockRecommendationRow, row)
    return (-rec.priority_score, -rec.holding_cost, rec.store_region_id, rec.product_id)


def build_stock_recommendations(
    snapshot: FactSnapshot,
    digits: int = 2,
    policy: RecommendationPolicy = DEFAULT_POLICY,
) -> ReportOutput:
    """Prioritized stock adjustments per store and product.

    Holding cost is the average inventory times the average price, both taken
    over the days that have a pricing row; groups without any are excluded, and
    so are products without a seasonality label.
    """
    summary = flag_summary(snapshot.inventory, policy.movement_rule.threshold_k)
    priced = snapshot.inventory.merge(
        snapshot.pricing[[*GROUP_KEYS, "record_date", "price"]],
        on=[*GROUP_KEYS, "record_date"],
    )
    if summary.empty or priced.empty:
        return ReportOutput()
    holding = (
        priced.groupby(GROUP_KEYS, sort=True)
        .agg(priced_avg_inventory=("inventory_level", "mean"), avg_price=("price", "mean"))
        .reset_index()
    )
    holding["holding_cost"] = holding["priced_avg_inventory"] * holding["avg_price"]
    frame = (
        summary.merge(holding, on=GROUP_KEYS)
        .merge(snapshot.products, on="product_id")
        .merge(snapshot.seasonality, on="product_id")
    )

    def convert(r: Record) -> Record:
        position = StockPosition(
            movement=classify_movement(r["flagged_percentage"], policy.movement_rule),
            avg_inventory=r["avg_inventory"],
            avg_daily_sales=r["avg_sales"],
            stddev_sales=r["stddev_sales"],
            avg_price=r["avg_price"],
            holding_cost=r["holding_cost"],
            understock_percentage=r["flagged_percentage"],
        )
        optimal = optimal_stock_level(position, policy)
        decision = decide(position, policy)
        return {
            "store_region_id": r["store_region_id"],
            "product_id": r["product_id"],
            "category": r["category"],
            "seasonality": r["seasonality"],
            "product_movement": position.movement,
            "current_avg_inventory": position.avg_inventory,
            "avg_daily_sales": position.avg_daily_sales,
            "recommended_stock_level": optimal,
            "stock_adjustment": optimal - position.avg_inventory,
            "safety_stock": safety_stock(position, policy),
            "holding_cost": position.holding_cost,
            "understock_percentage": position.understock_percentage,
            "action": decision.action,
            "adjustment_units": decision.adjustment_units,
            "recommendation": decision.recommendation,
            "priority_score": decision.priority_score,
            "estimated_cost_impact": decision.estimated_cost_impact,
        }

    output = _materialize(
        ReportName.STOCK_RECOMMENDATIONS,
        StockRecommendationRow,
        _order(frame, GROUP_KEYS),
        convert,
        digits,
    )
    # Priority is only known after the decision table has run
    output.rows.sort(key=_recommendation_order)
    return output


# =============================================================================
# Registry
# =============================================================================


@dataclass(frozen=True)
class ReportDefinition:
    """A named report: its builder, row model and catalog description."""

    name: ReportName
    description: str
    row_model: type[ReportRow]
    builder: Callable[[FactSnapshot, int], ReportOutput]

    @property
    def columns(self) -> list[str]:
        return list(self.row_model.model_fields)


REPORTS: dict[ReportName, ReportDefinition] = {
    definition.name: definition
    for definition in (
        ReportDefinition(
            ReportName.SALES_STATISTICS,
            "Average, median and standard deviation of daily units sold per store and product",
            SalesStatisticsRow,
            build_sales_statistics,
        ),
        ReportDefinition(
            ReportName.STOCK_LEVELS,
            "Daily stock level (inventory minus sales) against the stockout threshold",
            StockLevelRow,
            build_stock_levels,
        ),
        ReportDefinition(
            ReportName.MOVEMENT_CLASSIFICATION,
            "Understock frequency and fast-selling/slow-moving classification",
            MovementClassificationRow,
            build_movement_classification,
        ),
        ReportDefinition(
            ReportName.OVERSTOCK,
            "Days where inventory exceeded twice the demand forecast",
            OverstockRow,
            build_overstock,
        ),
        ReportDefinition(
            ReportName.CATEGORY_SUMMARY,
            "Average inventory, units sold and forecast volume per category",
            CategorySummaryRow,
            build_category_summary,
        ),
        ReportDefinition(
            ReportName.FORECAST_ACCURACY,
            "Average demand forecast against average units sold per store and product",
            ForecastAccuracyRow,
            build_forecast_accuracy,
        ),
        ReportDefinition(
            ReportName.COMPETITOR_PRICING,
            "Own price against competitor price and average units sold per product",
            CompetitorPricingRow,
            build_competitor_pricing,
        ),
        ReportDefinition(
            ReportName.STORE_STOCKOUT_RATES,
            "Stockout rate per store benchmarked against the mean of all stores",
            StoreStockoutRow,
            build_store_stockout_rates,
        ),
        ReportDefinition(
            ReportName.DISCOUNT_IMPACT,
            "Average discount against average units sold per product",
            DiscountImpactRow,
            build_discount_impact,
        ),
        ReportDefinition(
            ReportName.REORDER_POINTS,
            "Reorder point estimate per store and product from historical trend",
            ReorderPointRow,
            build_reorder_points,
        ),
        ReportDefinition(
            ReportName.LOW_INVENTORY,
            "Daily inventory level against the reorder point",
            LowInventoryRow,
            build_low_inventory,
        ),
        ReportDefinition(
            ReportName.INVENTORY_TURNOVER,
            "Approximate cost of goods sold over average inventory per product",
            InventoryTurnoverRow,
            build_inventory_turnover,
        ),
        ReportDefinition(
            ReportName.REGIONAL_SUMMARY,
            "Inventory volume, sales volume and stockout rate per region",
            RegionalSummaryRow,
            build_regional_summary,
        ),
        ReportDefinition(
            ReportName.KPI_SUMMARY,
            "Stockout rate, average inventory, daily sales and inventory age",
            KPISummaryRow,
            build_kpi_summary,
        ),
        ReportDefinition(
            ReportName.SEASONAL_FORECAST,
            "Monthly sales and forecast accuracy with seasonal trend per store and category",
            SeasonalForecastRow,
            build_seasonal_forecast,
        ),
        ReportDefinition(
            ReportName.STOCK_RECOMMENDATIONS,
            "Prioritized stock adjustment recommendations per store and product",
            StockRecommendationRow,
            build_stock_recommendations,
        ),
    )
}


def build_report(name: ReportName, snapshot: FactSnapshot, digits: int = 2) -> ReportOutput:
    """Build one report from a snapshot.

    Args:
        name: Report to build.
        snapshot: Validated fact snapshot.
        digits: Decimal places for emitted floats.

    Returns:
        Ordered rows and the number of skipped groups.
    """
    if snapshot.inventory.empty:
        return ReportOutput()
    return REPORTS[name].builder(snapshot, digits)
