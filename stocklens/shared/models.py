"""Shared SQLAlchemy model mixins."""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


class IngestedAtMixin:
    """Mixin stamping each row with the time it was loaded.

    Star-schema rows are insert-only, so there is no update timestamp.
    """

    ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
