"""Pydantic schemas for the inventory ingest API."""

from datetime import date

from pydantic import BaseModel, Field

# Staging columns in file order; CSV sources are read positionally
STAGING_COLUMNS = [
    "record_date",
    "store_id",
    "product_id",
    "category",
    "region",
    "inventory_level",
    "units_sold",
    "units_ordered",
    "demand_forecast",
    "price",
    "discount",
    "weather_condition",
    "holiday_promotion",
    "competitor_pricing",
    "seasonality",
]


class StagingRecord(BaseModel):
    """One denormalized daily inventory observation.

    The store is identified by (store_id, region); the same store_id in two
    regions is two distinct store-regions.
    """

    record_date: date
    store_id: str = Field(..., min_length=1, max_length=10, description="Store code")
    product_id: str = Field(..., min_length=1, max_length=10, description="Product code")
    category: str = Field(..., min_length=1, max_length=100)
    region: str = Field(..., min_length=1, max_length=100)
    inventory_level: int = Field(..., ge=0, description="Units on hand")
    units_sold: int = Field(..., ge=0)
    units_ordered: int = Field(..., ge=0)
    demand_forecast: float = Field(..., ge=0, description="Forecast units for the day")
    price: float = Field(..., ge=0)
    discount: float = Field(0.0, ge=0, le=100, description="Discount percentage")
    weather_condition: str | None = Field(None, max_length=50)
    holiday_promotion: bool = False
    competitor_pricing: float = Field(..., ge=0)
    seasonality: str = Field(..., min_length=1, max_length=50)


class InventoryIngestRequest(BaseModel):
    """Request body for POST /ingest/inventory-records."""

    records: list[StagingRecord] = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="Staging rows to load",
    )


class IngestRowError(BaseModel):
    """Error detail for a single rejected row."""

    row_index: int = Field(..., description="0-based index of the failed row")
    store_id: str | None = Field(None, description="Store code from the row")
    product_id: str | None = Field(None, description="Product code from the row")
    record_date: date | None = Field(None, description="Date from the row")
    error_code: str = Field(..., description="Machine-readable error code")
    error_message: str = Field(..., description="Human-readable error message")


class InventoryIngestResponse(BaseModel):
    """Response body for POST /ingest/inventory-records."""

    accepted_count: int = Field(..., ge=0, description="Rows accepted into the snapshot")
    rejected_count: int = Field(..., ge=0, description="Rows rejected")
    inserted: dict[str, int] = Field(
        default_factory=dict, description="New rows written per table"
    )
    total_processed: int = Field(..., ge=0, description="Total rows processed")
    errors: list[IngestRowError] = Field(default=[], description="Details of rejected rows")
    duration_ms: float = Field(..., ge=0, description="Processing duration in milliseconds")
