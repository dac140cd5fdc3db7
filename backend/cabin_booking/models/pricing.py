"""Seasonal and daily price override models."""

from __future__ import annotations

import datetime
import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cabin_booking.db.base import Base
from cabin_booking.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from cabin_booking.models.cabin import Cabin


class SeasonType(str, enum.Enum):
    """Labels admins attach to seasonal ranges."""

    OFF_SEASON = "off_season"
    REGULAR = "regular"
    HIGH_SEASON = "high_season"
    PEAK = "peak"
    SPECIAL = "special"


class SeasonalPrice(TimestampMixin, Base):
    """Nightly price override for an inclusive date range on one cabin."""

    __tablename__ = "seasonal_prices"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_seasonal_prices_range"),
        Index("ix_seasonal_prices_cabin_range", "cabin_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    cabin_id: Mapped[int] = mapped_column(
        ForeignKey("cabins.id", ondelete="CASCADE"), nullable=False
    )
    season_name_fa: Mapped[str] = mapped_column(String(255), nullable=False)
    season_name_en: Mapped[str] = mapped_column(String(255), nullable=False)
    season_type: Mapped[SeasonType] = mapped_column(
        Enum(SeasonType, values_callable=lambda cls: [m.value for m in cls]),
        default=SeasonType.REGULAR,
        nullable=False,
    )
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    price_irr: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    cabin: Mapped["Cabin"] = relationship("Cabin", back_populates="seasonal_prices")

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class DailyPrice(TimestampMixin, Base):
    """Single-date price override or block; a null cabin applies to all cabins."""

    __tablename__ = "daily_prices"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    cabin_id: Mapped[int | None] = mapped_column(
        ForeignKey("cabins.id", ondelete="CASCADE"), nullable=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    price_irr: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    reason_fa: Mapped[str | None] = mapped_column(String(255))
    reason_en: Mapped[str | None] = mapped_column(String(255))
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
