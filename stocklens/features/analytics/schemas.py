"""Pydantic schemas for inventory analytics.

Three groups live here:
- Classification enums emitted in report rows.
- Frozen rule configs (MovementRule, RecommendationPolicy) with per-report defaults.
- One row model per report, plus the report catalog and API envelopes.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from stocklens.shared.schemas import PaginatedResponse

# =============================================================================
# Enums
# =============================================================================


class ReportName(str, Enum):
    """Reports available in the analytics workload."""

    SALES_STATISTICS = "sales_statistics"
    STOCK_LEVELS = "stock_levels"
    MOVEMENT_CLASSIFICATION = "movement_classification"
    OVERSTOCK = "overstock"
    CATEGORY_SUMMARY = "category_summary"
    FORECAST_ACCURACY = "forecast_accuracy"
    COMPETITOR_PRICING = "competitor_pricing"
    STORE_STOCKOUT_RATES = "store_stockout_rates"
    DISCOUNT_IMPACT = "discount_impact"
    REORDER_POINTS = "reorder_points"
    LOW_INVENTORY = "low_inventory"
    INVENTORY_TURNOVER = "inventory_turnover"
    REGIONAL_SUMMARY = "regional_summary"
    KPI_SUMMARY = "kpi_summary"
    SEASONAL_FORECAST = "seasonal_forecast"
    STOCK_RECOMMENDATIONS = "stock_recommendations"


class StockStatus(str, Enum):
    """Daily stock level against the group threshold."""

    UNDERSTOCK = "Understock"
    NORMAL = "Normal"


class MovementType(str, Enum):
    """Movement class of a product at a store-region."""

    FAST_SELLING = "Fast-selling"
    SLOW_MOVING = "Slow-moving"


class InventoryStatus(str, Enum):
    """Daily inventory level against the reorder point."""

    LOW = "Low Inventory"
    SUFFICIENT = "Sufficient"


class ForecastQuality(str, Enum):
    """Coarse forecast quality based on absolute unit error."""

    GOOD = "Good Forecast"
    POOR = "Poor Forecast"


class AccuracyRating(str, Enum):
    """Forecast accuracy band based on absolute percentage error."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    VERY_POOR = "Very Poor"


class ForecastBias(str, Enum):
    """Direction of systematic forecast error."""

    OVER_FORECASTED = "Over-Forecasted"
    UNDER_FORECASTED = "Under-Forecasted"
    WELL_CALIBRATED = "Well-Calibrated"


class SalesPerformance(str, Enum):
    """Position of a month's sales within its seasonal series."""

    PEAK = "PEAK MONTH"
    TROUGH = "TROUGH MONTH"
    ABOVE_AVERAGE = "Above Average"
    BELOW_AVERAGE = "Below Average"


class ForecastPerformance(str, Enum):
    """Position of a month's forecast within its seasonal series."""

    PEAK = "PEAK FORECAST"
    TROUGH = "TROUGH FORECAST"
    ABOVE_AVERAGE = "Above Avg Forecast"
    BELOW_AVERAGE = "Below Avg Forecast"


class RegionPerformance(str, Enum):
    """Month sales relative to the series monthly average."""

    HIGH = "High Performing Region"
    GOOD = "Good Performing Region"
    AVERAGE = "Average Performing Region"
    LOW = "Low Performing Region"


class StorePerformance(str, Enum):
    """Store stockout rate relative to the mean of all store rates."""

    GOOD = "Good Performance"
    POOR = "Poor Performance - High Stockouts"


class RecommendationAction(str, Enum):
    """Stock adjustment action."""

    REDUCE = "REDUCE"
    MAINTAIN = "MAINTAIN"
    INCREASE = "INCREASE"
    OPTIMIZE = "OPTIMIZE"
    REVIEW = "REVIEW"


class ReportStatus(str, Enum):
    """Outcome of one report run."""

    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Rule Configs
# =============================================================================


class RuleConfigBase(BaseModel):
    """Immutable, strict base for rule parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class MovementRule(RuleConfigBase):
    """Threshold-and-percentage rule separating fast from slow movers.

    A record is flagged when ``delta < avg_delta - threshold_k * stddev_delta``;
    the group is fast when its flagged percentage is strictly above
    ``fast_above_pct``.
    """

    threshold_k: float = Field(default=1.3, ge=0, description="Stddev multiplier")
    fast_above_pct: float = Field(
        default=10.0,
        ge=0,
        le=100,
        description="Flagged-day percentage above which a group is fast",
    )


# Per-report defaults. These are distinct rules on purpose; do not merge them.
STOCKOUT_THRESHOLD_K = 1.0
MOVEMENT_RULE = MovementRule(threshold_k=1.3, fast_above_pct=10.0)
REORDER_BRANCH_RULE = MovementRule(threshold_k=1.3, fast_above_pct=5.0)
LOW_INVENTORY_RULE = MovementRule(threshold_k=1.0, fast_above_pct=5.0)
REORDER_STDDEV_FACTOR = 0.5
OVERSTOCK_MULTIPLIER = 2.0
FORECAST_GOOD_ERROR_UNITS = 10.0


class RecommendationPolicy(RuleConfigBase):
    """Parameters of the stock recommendation decision table."""

    movement_rule: MovementRule = Field(default=MOVEMENT_RULE)
    reduce_holding_cost_above: float = Field(default=1000.0, ge=0)
    watch_holding_cost_above: float = Field(default=500.0, ge=0)
    urgent_understock_pct: float = Field(default=15.0, ge=0, le=100)
    reduce_fraction: float = Field(default=0.3, ge=0, le=1)
    fast_buffer_stddevs: float = Field(default=1.5, ge=0)
    slow_buffer_stddevs: float = Field(default=0.5, ge=0)
    service_level_z: float = Field(default=1.65, gt=0, description="z-score (~95% service)")
    lead_time_days: int = Field(default=7, ge=1)
    min_cover_days: float = Field(default=3.0, ge=0)
    reduce_cost_rate: float = Field(default=0.25, ge=0)
    increase_cost_rate: float = Field(default=0.1, ge=0)


# =============================================================================
# Report Rows
# =============================================================================


class ReportRow(BaseModel):
    """Base class for report rows."""

    model_config = ConfigDict(frozen=True)


class SalesStatisticsRow(ReportRow):
    """Units-sold distribution per store-region and product."""

    store_region_id: str
    product_id: str
    avg_sales: float
    median_sales: float = Field(..., description="Rank-based median of daily units sold")
    stddev_sales: float = Field(..., ge=0)


class StockLevelRow(ReportRow):
    """Daily stock level classified against the stockout threshold."""

    record_date: date
    store_region_id: str
    product_id: str
    category: str
    stock_level: int = Field(..., description="inventory_level - units_sold")
    threshold: float
    stock_status: StockStatus


class MovementClassificationRow(ReportRow):
    """Understock frequency and resulting movement class."""

    store_region_id: str
    product_id: str
    understock_days: int = Field(..., ge=0)
    total_days: int = Field(..., ge=1)
    understock_percentage: float = Field(..., ge=0, le=100)
    movement_type: MovementType


class OverstockRow(ReportRow):
    """A day where inventory exceeded twice the demand forecast."""

    record_date: date
    store_region_id: str
    product_id: str
    inventory_level: int
    demand_forecast: float
    overstock_amount: float = Field(..., description="inventory_level - demand_forecast")


class CategorySummaryRow(ReportRow):
    """Inventory and sales volume per product category."""

    category: str
    avg_inventory: float
    total_units_sold: int
    total_forecast: float


class ForecastAccuracyRow(ReportRow):
    """Average forecast against average sales per store-region and product."""

    store_region_id: str
    product_id: str
    category: str
    avg_forecast: float
    avg_actual_sales: float
    avg_forecast_error: float = Field(..., ge=0, description="|avg sales - avg forecast|")
    forecast_quality: ForecastQuality
    absolute_percentage_error: float | None = Field(
        None, description="Null when average sales are zero"
    )
    accuracy_rating: AccuracyRating
    forecast_bias: ForecastBias


class CompetitorPricingRow(ReportRow):
    """Own price against competitor price per product."""

    product_id: str
    category: str
    avg_competitor_price: float
    price_difference: float = Field(..., description="avg own price - avg competitor price")
    avg_units_sold: float


class StoreStockoutRow(ReportRow):
    """Stockout rate per store-region, benchmarked against all stores."""

    store_region_id: str
    stockout_days: int = Field(..., ge=0)
    total_days: int = Field(..., ge=1)
    stockout_rate_percentage: float = Field(..., ge=0, le=100)
    overall_avg_stockout_rate: float
    store_performance: StorePerformance


class DiscountImpactRow(ReportRow):
    """Average discount against average units sold per product."""

    product_id: str
    category: str
    avg_discount: float
    avg_units_sold: float


class ReorderPointRow(ReportRow):
    """Reorder point estimate per store-region and product."""

    store_region_id: str
    product_id: str
    category: str
    movement_type: MovementType
    reorder_point: float
    avg_inventory: float
    avg_sales: float
    stddev_delta: float = Field(..., ge=0)
    understock_days: int = Field(..., ge=0)
    total_days: int = Field(..., ge=1)
    understock_percentage: float = Field(..., ge=0, le=100)


class LowInventoryRow(ReportRow):
    """Daily inventory level against the reorder point."""

    record_date: date
    store_region_id: str
    product_id: str
    category: str
    inventory_level: int
    reorder_point: float
    inventory_status: InventoryStatus


class InventoryTurnoverRow(ReportRow):
    """Approximate inventory turnover per product."""

    product_id: str
    category: str
    approx_cogs: float
    avg_inventory: float
    inventory_turnover_ratio: float | None = Field(
        None, description="Null when average inventory is zero"
    )


class RegionalSummaryRow(ReportRow):
    """Inventory volume and stockout rate per region."""

    region: str
    distinct_products: int
    total_inventory: int
    total_units_sold: int
    avg_inventory_per_product: float
    avg_sales_per_product: float
    total_stockout_days: int = Field(..., ge=0)
    total_records: int = Field(..., ge=1)
    stockout_rate_percentage: float = Field(..., ge=0, le=100)


class KPISummaryRow(ReportRow):
    """Headline KPIs per store-region and product."""

    store_region_id: str
    product_id: str
    category: str
    total_days: int = Field(..., ge=1)
    stockout_days: int = Field(..., ge=0)
    stockout_rate_percentage: float = Field(..., ge=0, le=100)
    avg_inventory_level: float
    avg_daily_sales: float
    estimated_inventory_age_days: float | None = Field(
        None, description="avg inventory / avg daily sales; null without sales"
    )


class SeasonalForecastRow(ReportRow):
    """Monthly sales and forecast within a (store-region, seasonality, category) series."""

    store_region_id: str
    category: str
    seasonality: str
    month_num: int = Field(..., ge=1, le=12)
    month_name: str
    total_sales: int
    total_forecast: float
    avg_monthly_sales: float
    avg_monthly_forecast: float
    peak_sales: int
    peak_forecast: float
    trough_sales: int
    trough_forecast: float
    sales_volatility: float
    forecast_volatility: float
    absolute_forecast_error: float
    absolute_percentage_error: float | None
    sales_performance_category: SalesPerformance
    forecast_performance_category: ForecastPerformance
    sales_variance_from_average: float | None
    forecast_variance_from_average: float | None
    forecast_accuracy_rating: AccuracyRating
    forecast_bias: ForecastBias
    region_performance_rating: RegionPerformance
    trend_based_next_month_prediction: float | None = Field(
        None, description="Null for the first month of a series"
    )


class StockRecommendationRow(ReportRow):
    """Prioritized stock adjustment for a store-region and product."""

    store_region_id: str
    product_id: str
    category: str
    seasonality: str
    product_movement: MovementType
    current_avg_inventory: float
    avg_daily_sales: float
    recommended_stock_level: float
    stock_adjustment: float = Field(..., description="recommended - current average inventory")
    safety_stock: float = Field(..., ge=0, description="Advisory; does not drive the action")
    holding_cost: float
    understock_percentage: float = Field(..., ge=0, le=100)
    action: RecommendationAction
    adjustment_units: float = Field(..., ge=0)
    recommendation: str
    priority_score: int = Field(..., ge=1, le=5)
    estimated_cost_impact: float = Field(..., ge=0)


# =============================================================================
# Catalog & API Envelopes
# =============================================================================


class ReportInfo(BaseModel):
    """Catalog entry describing a report."""

    name: ReportName
    description: str
    columns: list[str] = Field(..., description="Row fields in output order")


class ReportCatalogResponse(BaseModel):
    """All reports the service can compute."""

    reports: list[ReportInfo]


class ReportPageResponse(PaginatedResponse[dict[str, Any]]):
    """One page of a computed report."""

    report: ReportName
    description: str
    skipped_groups: int = Field(
        0, ge=0, description="Groups dropped because their row could not be computed"
    )
