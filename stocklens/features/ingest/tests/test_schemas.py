"""Unit tests for ingest schemas."""

from datetime import date

import pytest
from pydantic import ValidationError

from stocklens.features.ingest.schemas import (
    STAGING_COLUMNS,
    IngestRowError,
    InventoryIngestRequest,
    InventoryIngestResponse,
    StagingRecord,
)


class TestStagingRecord:
    """Tests for StagingRecord schema."""

    def test_valid_record(self, sample_record):
        """Test valid record creation."""
        assert sample_record.record_date == date(2024, 1, 1)
        assert sample_record.store_id == "S001"
        assert sample_record.inventory_level == 231
        assert sample_record.holiday_promotion is False

    def test_field_order_matches_staging_columns(self):
        """Record fields follow the positional file layout."""
        assert list(StagingRecord.model_fields) == STAGING_COLUMNS

    def test_negative_inventory_rejected(self, sample_record):
        """Negative inventory is rejected."""
        data = sample_record.model_dump() | {"inventory_level": -1}
        with pytest.raises(ValidationError) as exc_info:
            StagingRecord(**data)
        assert "inventory_level" in str(exc_info.value)

    def test_discount_above_hundred_rejected(self, sample_record):
        """Discount is a percentage."""
        data = sample_record.model_dump() | {"discount": 150}
        with pytest.raises(ValidationError):
            StagingRecord(**data)

    def test_empty_store_id_rejected(self, sample_record):
        """Store id is required."""
        data = sample_record.model_dump() | {"store_id": ""}
        with pytest.raises(ValidationError):
            StagingRecord(**data)

    def test_weather_optional(self, sample_record):
        """Weather may be missing."""
        data = sample_record.model_dump() | {"weather_condition": None}
        assert StagingRecord(**data).weather_condition is None


class TestInventoryIngestRequest:
    """Tests for InventoryIngestRequest schema."""

    def test_valid_request(self, sample_records):
        """Test valid request."""
        request = InventoryIngestRequest(records=sample_records)
        assert len(request.records) == 3

    def test_empty_records_rejected(self):
        """At least one record is required."""
        with pytest.raises(ValidationError):
            InventoryIngestRequest(records=[])


class TestInventoryIngestResponse:
    """Tests for InventoryIngestResponse schema."""

    def test_response_with_errors(self):
        """Rejected rows are listed with their codes."""
        response = InventoryIngestResponse(
            accepted_count=1,
            rejected_count=1,
            inserted={"inventory": 1},
            total_processed=2,
            errors=[
                IngestRowError(
                    row_index=1,
                    store_id="S001",
                    product_id="P0001",
                    record_date=date(2024, 1, 1),
                    error_code="DUPLICATE_RECORD",
                    error_message="Duplicate inventory record",
                )
            ],
            duration_ms=3.2,
        )
        assert response.errors[0].error_code == "DUPLICATE_RECORD"
        assert response.inserted == {"inventory": 1}
