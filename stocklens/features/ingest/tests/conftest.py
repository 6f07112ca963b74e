"""Feature-specific test fixtures for ingest module."""

from datetime import date
from pathlib import Path

import pytest

from stocklens.features.ingest.schemas import StagingRecord

STAGING_HEADER = (
    "Date,Store ID,Product ID,Category,Region,Inventory Level,Units Sold,Units Ordered,"
    "Demand Forecast,Price,Discount,Weather Condition,Holiday/Promotion,Competitor Pricing,"
    "Seasonality"
)


def make_record(**overrides) -> StagingRecord:
    values = {
        "record_date": date(2024, 1, 1),
        "store_id": "S001",
        "product_id": "P0001",
        "category": "Groceries",
        "region": "North",
        "inventory_level": 231,
        "units_sold": 127,
        "units_ordered": 55,
        "demand_forecast": 135.47,
        "price": 33.5,
        "discount": 20.0,
        "weather_condition": "Rainy",
        "holiday_promotion": False,
        "competitor_pricing": 29.69,
        "seasonality": "Autumn",
    }
    values.update(overrides)
    return StagingRecord(**values)


@pytest.fixture
def sample_record() -> StagingRecord:
    """A valid staging record."""
    return make_record()


@pytest.fixture
def sample_records() -> list[StagingRecord]:
    """Three valid records: two stores in different regions, two days."""
    return [
        make_record(),
        make_record(record_date=date(2024, 1, 2), units_sold=90, holiday_promotion=True),
        make_record(region="South", product_id="P0002", category="Toys", seasonality="Winter"),
    ]


@pytest.fixture
def staging_csv(tmp_path: Path) -> Path:
    """Staging CSV with one invalid row and one duplicate."""
    lines = [
        STAGING_HEADER,
        "2024-01-01,S001,P0001,Groceries,North,231,127,55,135.47,33.5,20,Rainy,0,29.69,Autumn",
        "2024-01-02,S001,P0001,Groceries,North,204,150,66,144.04,63.01,20,Sunny,1,66.16,Autumn",
        "2024-01-01,S001,P0002,Toys,South,96,5,164,2.46,27.99,10,Cloudy,0,30.32,Winter",
        "2024-01-03,S001,P0001,Groceries,North,-5,10,0,12.0,33.5,0,Sunny,0,30.0,Autumn",
        "2024-01-01,S001,P0001,Groceries,North,1,1,1,1.0,1.0,0,Sunny,0,1.0,Autumn",
        "not-a-date,S002,P0003,Toys,East,10,1,0,1.0,2.0,0,,0,2.0,Spring",
    ]
    path = tmp_path / "inventory.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
