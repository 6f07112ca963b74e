"""Tests for application errors and problem-details rendering."""

import json

import pytest
from starlette.requests import Request

from stocklens.core.exceptions import (
    DatabaseError,
    DataIntegrityError,
    NotFoundError,
    StockLensError,
    ValidationError,
    stocklens_exception_handler,
)
from stocklens.core.logging import request_id_ctx
from stocklens.core.problem_details import create_problem_detail, error_type_uri


def _request(path: str = "/analytics/reports/x") -> Request:
    return Request({"type": "http", "method": "GET", "path": path, "headers": []})


class TestErrorClasses:
    """Each error class declares its code and status."""

    @pytest.mark.parametrize(
        ("error_class", "code", "status"),
        [
            (NotFoundError, "NOT_FOUND", 404),
            (ValidationError, "VALIDATION_ERROR", 422),
            (DataIntegrityError, "DATA_INTEGRITY_ERROR", 409),
            (DatabaseError, "DATABASE_ERROR", 500),
            (StockLensError, "INTERNAL_ERROR", 500),
        ],
    )
    def test_code_and_status(self, error_class, code, status):
        error = error_class()

        assert error.code == code
        assert error.status_code == status
        assert error.details == {}
        assert str(error) == error.default_message

    def test_message_and_details(self):
        error = DataIntegrityError(
            message="Snapshot violates 1 integrity rule(s)",
            details={"inventory.duplicate_keys": 2},
        )

        assert error.message == "Snapshot violates 1 integrity rule(s)"
        assert error.details["inventory.duplicate_keys"] == 2
        assert error.title == "Data Integrity Error"
        assert error.is_client_error


class TestProblemDetails:
    """Tests for the problem document builders."""

    def test_type_uri_for_known_and_unknown_codes(self):
        assert error_type_uri("DATA_INTEGRITY_ERROR") == "/errors/data-integrity"
        assert error_type_uri("RATE_LIMITED") == "/errors/rate-limited"

    def test_instance_follows_request_id(self):
        token = request_id_ctx.set("abc")
        try:
            problem = create_problem_detail(status=404, title="Not Found", error_code="NOT_FOUND")
        finally:
            request_id_ctx.reset(token)

        assert problem.instance == "/requests/abc"
        assert problem.request_id == "abc"

    def test_no_instance_outside_request(self):
        problem = create_problem_detail(status=500, title="Internal Error")

        assert problem.instance is None


class TestHandler:
    """Tests for the StockLensError handler."""

    @pytest.mark.asyncio
    async def test_client_error_exposes_details(self):
        error = NotFoundError(
            message="Unknown report: margin",
            details={"report": "margin", "available": ["kpi_summary"]},
        )

        response = await stocklens_exception_handler(_request(), error)

        body = json.loads(response.body)
        assert response.status_code == 404
        assert response.media_type == "application/problem+json"
        assert body["details"]["available"] == ["kpi_summary"]
        assert body["title"] == "Not Found"

    @pytest.mark.asyncio
    async def test_server_error_hides_details(self):
        error = DatabaseError(details={"error": "password authentication failed"})

        response = await stocklens_exception_handler(_request(), error)

        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["code"] == "DATABASE_ERROR"
        assert "details" not in body
