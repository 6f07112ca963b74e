"""RFC 7807 Problem Details for HTTP APIs.

Every error leaving the API is rendered as ``application/problem+json`` so that
report consumers can tell an unknown report apart from a broken snapshot or a
database outage without parsing free text.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from stocklens.core.logging import request_id_ctx

ERROR_TYPE_BASE = "/errors"

ERROR_TYPES = {
    "NOT_FOUND": f"{ERROR_TYPE_BASE}/not-found",
    "VALIDATION_ERROR": f"{ERROR_TYPE_BASE}/validation",
    "DATA_INTEGRITY_ERROR": f"{ERROR_TYPE_BASE}/data-integrity",
    "DATABASE_ERROR": f"{ERROR_TYPE_BASE}/database",
    "INTERNAL_ERROR": f"{ERROR_TYPE_BASE}/internal",
}


def error_type_uri(error_code: str) -> str:
    """Type URI for an error code; unknown codes get a slug under /errors."""
    return ERROR_TYPES.get(error_code, f"{ERROR_TYPE_BASE}/{error_code.lower().replace('_', '-')}")


class ProblemDetail(BaseModel):
    """RFC 7807 problem document.

    ``errors``, ``details``, ``code`` and ``request_id`` are extension members.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="about:blank", description="URI identifying the problem type.")
    title: str = Field(..., description="Short summary of the problem type.")
    status: int = Field(..., ge=400, le=599, description="HTTP status code.")
    detail: str | None = Field(None, description="Explanation specific to this occurrence.")
    instance: str | None = Field(None, description="URI reference for this occurrence.")
    errors: list[dict[str, Any]] | None = Field(
        None,
        description="Field-level validation errors, present on 422 responses.",
    )
    details: dict[str, Any] | None = Field(
        None,
        description="Structured context for client errors, e.g. the known report names.",
    )
    code: str | None = Field(None, description="Machine-readable error code.")
    request_id: str | None = Field(None, description="Request correlation ID.")


class ProblemDetailResponse(JSONResponse):
    """JSON response carrying the problem+json media type."""

    media_type = "application/problem+json"


def create_problem_detail(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    details: dict[str, Any] | None = None,
) -> ProblemDetail:
    """Build a ProblemDetail bound to the current request id.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Explanation of this occurrence.
        error_code: Machine-readable code, also used for the type URI.
        errors: Field-level validation errors.
        details: Extra structured context.

    Returns:
        ProblemDetail whose ``instance`` points at the request id, if any.
    """
    request_id = request_id_ctx.get()
    return ProblemDetail(
        type=error_type_uri(error_code),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        errors=errors,
        details=details,
        code=error_code,
        request_id=request_id,
    )


def problem_response(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
    details: dict[str, Any] | None = None,
) -> ProblemDetailResponse:
    """Wrap a ProblemDetail in a problem+json response."""
    problem = create_problem_detail(
        status=status,
        title=title,
        detail=detail,
        error_code=error_code,
        errors=errors,
        details=details,
    )
    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
    )
