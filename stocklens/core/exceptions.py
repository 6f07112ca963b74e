"""Application errors and their FastAPI problem-details handlers.

Each error class declares its code, HTTP status and default message; the
handlers turn any ``StockLensError`` into an RFC 7807 document. Client errors
(4xx) carry their ``details`` in the document, for example the list of known
reports on a 404. Server errors only log them.
"""

from typing import Any, ClassVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from stocklens.core.logging import get_logger
from stocklens.core.problem_details import ProblemDetailResponse, problem_response

logger = get_logger(__name__)


class StockLensError(Exception):
    """Base class for errors raised by StockLens itself."""

    code: ClassVar[str] = "INTERNAL_ERROR"
    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = "Internal error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def title(self) -> str:
        """Problem title derived from the code, e.g. "Data Integrity Error"."""
        return self.code.replace("_", " ").title()

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class NotFoundError(StockLensError):
    """Unknown report (or other named resource)."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ValidationError(StockLensError):
    """Staging input that cannot be read or parsed."""

    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Validation failed"


class DataIntegrityError(StockLensError):
    """Fact snapshot violates a referential or uniqueness invariant.

    Raised while building a snapshot, never while a report is running.
    """

    code = "DATA_INTEGRITY_ERROR"
    status_code = 409
    default_message = "Fact data violates integrity constraints"


class DatabaseError(StockLensError):
    """Reading or writing the star schema failed."""

    code = "DATABASE_ERROR"
    status_code = 500
    default_message = "Database operation failed"


# =============================================================================
# Exception Handlers (RFC 7807)
# =============================================================================


async def stocklens_exception_handler(
    request: Request,
    exc: StockLensError,
) -> ProblemDetailResponse:
    """Render a StockLensError as a problem document."""
    log = logger.warning if exc.is_client_error else logger.error
    log(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
        details=exc.details if exc.is_client_error and exc.details else None,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request validation errors with a field-level ``errors`` list.

    Field paths drop the leading ``body`` segment, so a bad quantity in the
    first ingested record is reported as ``records.0.units_sold``.
    """
    field_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=request.url.path,
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        detail=f"Request validation failed with {len(field_errors)} error(s).",
        error_code="VALIDATION_ERROR",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Render unexpected exceptions as a generic 500 problem."""
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred. Quote the request_id when reporting it.",
        error_code="INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the problem-details handlers on the app."""
    app.add_exception_handler(StockLensError, stocklens_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
