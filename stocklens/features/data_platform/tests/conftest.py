"""Fixtures for data platform tests: small raw frames for the six tables."""

import pandas as pd
import pytest


@pytest.fixture
def raw_tables() -> dict[str, pd.DataFrame]:
    """Two store-regions, two products, two days of consistent data."""
    dates = ["2024-01-01", "2024-01-02"]
    return {
        "stores": pd.DataFrame(
            {
                "store_region_id": ["S001_North", "S001_South"],
                "store_id": ["S001", "S001"],
                "region": ["North", "South"],
            }
        ),
        "products": pd.DataFrame({"product_id": ["P1", "P2"], "category": ["Toys", "Food"]}),
        "seasonality": pd.DataFrame(
            {"product_id": ["P1", "P2"], "seasonality": ["Winter", "Summer"]}
        ),
        "inventory": pd.DataFrame(
            {
                "record_date": dates * 2,
                "store_region_id": ["S001_North"] * 2 + ["S001_South"] * 2,
                "product_id": ["P1", "P1", "P2", "P2"],
                "inventory_level": [100, 90, 40, 35],
                "units_sold": [10, 12, 5, 7],
                "units_ordered": [0, 20, 0, 10],
                "demand_forecast": [11.5, 12.0, 6.0, 6.5],
            }
        ),
        "pricing": pd.DataFrame(
            {
                "store_region_id": ["S001_North", "S001_South"],
                "product_id": ["P1", "P2"],
                "record_date": ["2024-01-01", "2024-01-01"],
                "price": [10.0, 4.5],
                "discount": [0.0, 10.0],
                "competitor_pricing": [9.5, 4.75],
            }
        ),
        "events": pd.DataFrame(
            {
                "store_region_id": ["S001_North", "S001_South"],
                "record_date": ["2024-01-01", "2024-01-01"],
                "weather_condition": ["Sunny", None],
                "holiday_promotion": [False, True],
            }
        ),
    }
