"""Shared pytest fixtures for StockLens end-to-end tests."""

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stocklens.core.config import get_settings
from stocklens.core.database import Base
from stocklens.main import app

STAGING_HEADER = (
    "Date,Store ID,Product ID,Category,Region,Inventory Level,Units Sold,Units Ordered,"
    "Demand Forecast,Price,Discount,Weather Condition,Holiday/Promotion,Competitor Pricing,"
    "Seasonality"
)


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def staging_csv(tmp_path: Path) -> Path:
    """Staging file covering two store-regions, three products and two months."""
    rows = []
    for day in range(1, 11):
        for month in (1, 2):
            date = f"2024-{month:02d}-{day:02d}"
            rows.extend(
                [
                    f"{date},S001,P0001,Groceries,North,{200 - day * 3},{20 + day % 4},30,"
                    f"{22 + month},12.5,10,Sunny,{day % 2},13.0,Autumn",
                    f"{date},S001,P0002,Toys,South,{80 + day},{3 + (day % 3)},0,"
                    f"{4.5 * month},40.0,0,Rainy,0,38.5,Winter",
                    f"{date},S002,P0003,Electronics,North,{500 - day},{1 if day != 7 else 30},5,"
                    "2.0,250.0,5,Cloudy,0,240.0,Summer",
                ]
            )
    path = tmp_path / "inventory.csv"
    path.write_text("\n".join([STAGING_HEADER, *rows]) + "\n", encoding="utf-8")
    return path


@pytest.fixture
async def db_session():
    """Create async database session for integration tests.

    This fixture creates all tables, provides a session, and cleans up after.
    Requires a PostgreSQL database reachable at DATABASE_URL.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    # Cleanup: drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
