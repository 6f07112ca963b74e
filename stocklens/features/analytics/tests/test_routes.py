"""Tests for analytics API routes."""

import pytest
from httpx import ASGITransport, AsyncClient

from stocklens.core.config import get_settings
from stocklens.features.analytics.routes import get_snapshot
from stocklens.main import app


@pytest.fixture
async def client(snapshot):
    """HTTP client whose reports are computed from the fixture snapshot."""

    async def override_get_snapshot():
        return snapshot

    app.dependency_overrides[get_snapshot] = override_get_snapshot
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


class TestListReports:
    """Tests for GET /analytics/reports."""

    @pytest.mark.asyncio
    async def test_lists_catalog(self, client):
        """The catalog lists every report with its columns."""
        response = await client.get("/analytics/reports")

        assert response.status_code == 200
        reports = response.json()["reports"]
        assert len(reports) == 16
        assert reports[-1]["name"] == "stock_recommendations"
        assert "priority_score" in reports[-1]["columns"]


class TestGetReport:
    """Tests for GET /analytics/reports/{name}."""

    @pytest.mark.asyncio
    async def test_returns_first_page(self, client):
        """A report returns ordered rows with paging metadata."""
        response = await client.get("/analytics/reports/stock_recommendations")

        assert response.status_code == 200
        data = response.json()
        assert data["report"] == "stock_recommendations"
        assert data["total"] == 2
        assert data["page"] == 1
        assert data["skipped_groups"] == 0
        assert [item["action"] for item in data["items"]] == ["REDUCE", "OPTIMIZE"]

    @pytest.mark.asyncio
    async def test_pagination(self, client):
        """page and page_size slice the rows."""
        response = await client.get(
            "/analytics/reports/overstock", params={"page": 3, "page_size": 5}
        )

        data = response.json()
        assert data["pages"] == 3
        assert len(data["items"]) == 2
        assert data["has_next"] is False

    @pytest.mark.asyncio
    async def test_page_size_clamped_to_setting(self, client, monkeypatch):
        """page_size never exceeds the configured maximum."""
        monkeypatch.setattr(get_settings(), "analytics_max_page_size", 4)

        response = await client.get("/analytics/reports/overstock", params={"page_size": 10})

        assert response.json()["page_size"] == 4

    @pytest.mark.asyncio
    async def test_unknown_report_is_404(self, client):
        """Unknown report names are rendered as problem details."""
        response = await client.get("/analytics/reports/profit_margin")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert "profit_margin" in body["detail"]
        assert body["type"] == "/errors/not-found"
        assert "low_inventory" in body["details"]["available"]

    @pytest.mark.asyncio
    async def test_invalid_page_is_422(self, client):
        """page must be positive."""
        response = await client.get("/analytics/reports/overstock", params={"page": 0})

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "query.page"
