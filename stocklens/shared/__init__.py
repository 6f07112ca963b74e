"""Shared utilities used across features."""

from stocklens.shared.models import IngestedAtMixin
from stocklens.shared.schemas import PaginatedResponse, PaginationParams
from stocklens.shared.utils import paginate_rows, round_half_up

__all__ = [
    "IngestedAtMixin",
    "PaginatedResponse",
    "PaginationParams",
    "paginate_rows",
    "round_half_up",
]
