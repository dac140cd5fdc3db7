"""Reservation models."""
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cabin_booking.db.base import Base
from cabin_booking.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from cabin_booking.models.cabin import Cabin
    from cabin_booking.models.coupon import Coupon


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, enum.Enum):
    """Payment sub-status, tracked independently of the reservation status."""

    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentMethod(str, enum.Enum):
    """How the guest intends to pay."""

    ONLINE_ZARINPAL = "online_zarinpal"
    ONLINE_PAYPAL = "online_paypal"
    CRYPTO_USDT = "crypto_usdt"
    CASH_ON_ARRIVAL = "cash_on_arrival"


# Statuses whose nights count as occupied.
ACTIVE_RESERVATION_STATUSES = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.PENDING_PAYMENT,
        ReservationStatus.CONFIRMED,
    }
)

TERMINAL_RESERVATION_STATUSES = frozenset(
    {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED}
)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Reservation(TimestampMixin, Base):
    """One guest's claim on one cabin for ``[check_in_date, check_out_date)``."""

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint(
            "check_in_date < check_out_date", name="ck_reservations_date_order"
        ),
        CheckConstraint("guests_count > 0", name="ck_reservations_guests_positive"),
        Index("ix_reservations_cabin_dates", "cabin_id", "check_in_date", "check_out_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    cabin_id: Mapped[int] = mapped_column(
        ForeignKey("cabins.id", ondelete="CASCADE"), nullable=False
    )
    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    guest_email: Mapped[str | None] = mapped_column(String(255))
    guests_count: Mapped[int] = mapped_column(Integer, nullable=False)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    nights_count: Mapped[int] = mapped_column(Integer, nullable=False)

    calculated_price_irr: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    calculated_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_amount_irr: Mapped[Decimal] = mapped_column(
        Numeric(14, 0), default=Decimal("0"), nullable=False
    )
    discount_amount_usd: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0.00"), nullable=False
    )
    final_price_irr: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    final_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    coupon_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True
    )
    coupon_code: Mapped[str | None] = mapped_column(String(64))

    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, values_callable=_enum_values), nullable=False
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, values_callable=_enum_values),
        default=PaymentStatus.UNPAID,
        nullable=False,
    )
    payment_reference: Mapped[str | None] = mapped_column(String(255))
    payment_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_verified_by: Mapped[str | None] = mapped_column(String(255))

    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, values_callable=_enum_values),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    cabin: Mapped["Cabin"] = relationship("Cabin", back_populates="reservations")
    coupon: Mapped["Coupon | None"] = relationship("Coupon")
