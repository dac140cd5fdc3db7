"""Administratively blocked dates."""
from __future__ import annotations

import datetime
import uuid

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cabin_booking.db.base import Base
from cabin_booking.models.mixins import TimestampMixin


class BlockedDate(TimestampMixin, Base):
    """A night no guest may book; a null cabin blocks every cabin."""

    __tablename__ = "blocked_dates"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    cabin_id: Mapped[int | None] = mapped_column(
        ForeignKey("cabins.id", ondelete="CASCADE"), nullable=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    reason_fa: Mapped[str | None] = mapped_column(String(255))
    reason_en: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[str | None] = mapped_column(String(255))
