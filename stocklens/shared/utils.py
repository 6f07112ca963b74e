"""Shared utility functions."""

import math
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

from stocklens.shared.schemas import PaginatedResponse, PaginationParams

T = TypeVar("T")


def paginate_rows(
    rows: Sequence[T],
    pagination: PaginationParams,
) -> PaginatedResponse[T]:
    """Slice an already ordered row sequence into one page.

    Args:
        rows: Full, ordered result set.
        pagination: Requested page.

    Returns:
        PaginatedResponse with computed page count.
    """
    total = len(rows)
    pages = math.ceil(total / pagination.page_size) if total > 0 else 0
    page_items = list(rows[pagination.window()])
    return PaginatedResponse[T](
        items=page_items,
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        pages=pages,
    )


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half away from zero (2.345 -> 2.35), unlike round()'s banker's rounding.

    Raises:
        decimal.InvalidOperation: If value is infinite.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
