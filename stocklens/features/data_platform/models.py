"""Data platform ORM models for the retail inventory star schema.

This module defines dimension and fact tables:
- Dimensions: Store, Product, Seasonality
- Facts: InventoryRecord, PricingRecord, EventRecord

Grain: InventoryRecord uniquely keyed by (record_date, store_region_id, product_id).
Stores are keyed by the composite store_region_id = store_id + "_" + region,
because the same store_id appears under several regions in the source data.
"""

import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stocklens.core.database import Base
from stocklens.shared.models import IngestedAtMixin


def make_store_region_id(store_id: str, region: str) -> str:
    """Build the composite store key used by every fact table."""
    return f"{store_id}_{region}"


# ============================================================================
# DIMENSION TABLES
# ============================================================================


class Store(IngestedAtMixin, Base):
    """Store dimension table.

    Attributes:
        store_region_id: Composite primary key (store_id + "_" + region).
        store_id: Store code as it appears in the source data.
        region: Geographic region.
    """

    __tablename__ = "store"

    store_region_id: Mapped[str] = mapped_column(String(110), primary_key=True)
    store_id: Mapped[str] = mapped_column(String(10), index=True)
    region: Mapped[str] = mapped_column(String(100), index=True)

    inventory_records: Mapped[list["InventoryRecord"]] = relationship(back_populates="store")
    pricing_records: Mapped[list["PricingRecord"]] = relationship(back_populates="store")
    event_records: Mapped[list["EventRecord"]] = relationship(back_populates="store")


class Product(IngestedAtMixin, Base):
    """Product dimension table.

    Attributes:
        product_id: Product code (primary key).
        category: Product category.
    """

    __tablename__ = "product"

    product_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    category: Mapped[str] = mapped_column(String(100), index=True)

    seasonality: Mapped["Seasonality | None"] = relationship(back_populates="product")
    inventory_records: Mapped[list["InventoryRecord"]] = relationship(back_populates="product")
    pricing_records: Mapped[list["PricingRecord"]] = relationship(back_populates="product")


class Seasonality(IngestedAtMixin, Base):
    """Seasonality label per product (one-to-one with Product)."""

    __tablename__ = "seasonality"

    product_id: Mapped[str] = mapped_column(
        String(10), ForeignKey("product.product_id"), primary_key=True
    )
    seasonality: Mapped[str] = mapped_column(String(50))

    product: Mapped["Product"] = relationship(back_populates="seasonality")


# ============================================================================
# FACT TABLES
# ============================================================================


class InventoryRecord(IngestedAtMixin, Base):
    """Daily inventory fact table driving every analytics report.

    CRITICAL: Grain is (record_date, store_region_id, product_id) - one row per
    store-region/product/day, enforced by the composite primary key.

    Attributes:
        record_date: Business date.
        store_region_id: Store (FK).
        product_id: Product (FK).
        inventory_level: Units on hand.
        units_sold: Units sold that day.
        units_ordered: Units ordered that day.
        demand_forecast: Forecast demand for the day.
    """

    __tablename__ = "inventory_record"

    record_date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    store_region_id: Mapped[str] = mapped_column(
        String(110), ForeignKey("store.store_region_id"), primary_key=True
    )
    product_id: Mapped[str] = mapped_column(
        String(10), ForeignKey("product.product_id"), primary_key=True
    )
    inventory_level: Mapped[int] = mapped_column(Integer)
    units_sold: Mapped[int] = mapped_column(Integer)
    units_ordered: Mapped[int] = mapped_column(Integer)
    demand_forecast: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    store: Mapped["Store"] = relationship(back_populates="inventory_records")
    product: Mapped["Product"] = relationship(back_populates="inventory_records")

    __table_args__ = (
        Index(
            "ix_inventory_record_store_product_date",
            "store_region_id",
            "product_id",
            "record_date",
        ),
        CheckConstraint("inventory_level >= 0", name="ck_inventory_level_non_negative"),
        CheckConstraint("units_sold >= 0", name="ck_inventory_units_sold_non_negative"),
        CheckConstraint("units_ordered >= 0", name="ck_inventory_units_ordered_non_negative"),
        CheckConstraint("demand_forecast >= 0", name="ck_inventory_forecast_non_negative"),
    )


class PricingRecord(IngestedAtMixin, Base):
    """Daily pricing fact table.

    Attributes:
        store_region_id: Store (FK).
        product_id: Product (FK).
        record_date: Business date.
        price: Shelf price.
        discount: Discount applied (percentage points).
        competitor_pricing: Observed competitor price.
    """

    __tablename__ = "pricing_record"

    store_region_id: Mapped[str] = mapped_column(
        String(110), ForeignKey("store.store_region_id"), primary_key=True
    )
    product_id: Mapped[str] = mapped_column(
        String(10), ForeignKey("product.product_id"), primary_key=True
    )
    record_date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    competitor_pricing: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    store: Mapped["Store"] = relationship(back_populates="pricing_records")
    product: Mapped["Product"] = relationship(back_populates="pricing_records")

    __table_args__ = (
        Index(
            "ix_pricing_record_store_product_date",
            "store_region_id",
            "product_id",
            "record_date",
        ),
        CheckConstraint("price >= 0", name="ck_pricing_price_non_negative"),
    )


class EventRecord(IngestedAtMixin, Base):
    """Daily store-level events (weather, holiday promotions)."""

    __tablename__ = "event_record"

    store_region_id: Mapped[str] = mapped_column(
        String(110), ForeignKey("store.store_region_id"), primary_key=True
    )
    record_date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    weather_condition: Mapped[str | None] = mapped_column(String(50), nullable=True)
    holiday_promotion: Mapped[bool] = mapped_column(Boolean, default=False)

    store: Mapped["Store"] = relationship(back_populates="event_records")

    __table_args__ = (Index("ix_event_record_store_date", "store_region_id", "record_date"),)
