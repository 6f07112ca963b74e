"""Paging schemas for report rows."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field

T = TypeVar("T")


class PaginationParams(BaseModel):
    """Requested page of an ordered report (1-indexed)."""

    page: int = Field(1, ge=1)
    page_size: int = Field(100, ge=1, le=1000)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def window(self) -> slice:
        """Slice selecting this page's rows."""
        return slice(self.offset, self.offset + self.page_size)


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of rows plus the totals needed to fetch the rest."""

    items: list[T] = Field(..., description="Rows on this page, in report order")
    total: int = Field(..., ge=0, description="Rows in the whole report")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    pages: int = Field(..., ge=0, description="Number of non-empty pages")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.page < self.pages
