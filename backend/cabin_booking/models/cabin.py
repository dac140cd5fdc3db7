"""Bookable cabins."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cabin_booking.db.base import Base
from cabin_booking.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from cabin_booking.models.pricing import SeasonalPrice
    from cabin_booking.models.reservation import Reservation


class Cabin(TimestampMixin, Base):
    """A rentable cabin with its capacity and base nightly price."""

    __tablename__ = "cabins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name_fa: Mapped[str] = mapped_column(String(255), nullable=False)
    name_en: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    size_sqm: Mapped[int | None] = mapped_column(Integer)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    base_price_irr: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    base_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation", back_populates="cabin"
    )
    seasonal_prices: Mapped[list["SeasonalPrice"]] = relationship(
        "SeasonalPrice", back_populates="cabin", cascade="all, delete-orphan"
    )
