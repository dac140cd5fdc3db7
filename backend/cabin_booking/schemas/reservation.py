"""Pydantic schemas for reservations."""
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from cabin_booking.models.reservation import (
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
)


class ReservationCreate(BaseModel):
    """Booking request.

    Dates stay plain strings here so malformed values come back as
    ``INVALID_CHECK_IN_DATE`` / ``INVALID_DATE_RANGE`` rather than a 422.
    """

    cabin_id: int
    guest_name: str = Field(min_length=1, max_length=255)
    guest_phone: str = Field(min_length=1, max_length=32)
    guest_email: str | None = Field(default=None, max_length=255)
    guests_count: int
    check_in: str
    check_out: str
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_ARRIVAL
    coupon_code: str | None = Field(default=None, max_length=64)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    cabin_id: int
    guest_name: str
    guest_phone: str
    guest_email: str | None = None
    guests_count: int
    check_in_date: datetime.date
    check_out_date: datetime.date
    nights_count: int
    calculated_price_irr: Decimal
    calculated_price_usd: Decimal
    discount_amount_irr: Decimal
    discount_amount_usd: Decimal
    final_price_irr: Decimal
    final_price_usd: Decimal
    coupon_code: str | None = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_reference: str | None = None
    payment_verified_at: datetime.datetime | None = None
    status: ReservationStatus
    admin_notes: str | None = None
    created_at: datetime.datetime
    confirmed_at: datetime.datetime | None = None
    cancelled_at: datetime.datetime | None = None
    completed_at: datetime.datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CabinSummaryRead(BaseModel):
    """Cabin names shown next to a listed reservation."""

    id: int
    slug: str
    name_fa: str
    name_en: str

    model_config = ConfigDict(from_attributes=True)


class ReservationListItem(ReservationRead):
    """Reservation row in a listing, with its cabin."""

    cabin: CabinSummaryRead


class ReservationCancelRequest(BaseModel):
    """Payload for cancelling a reservation."""

    reason: str | None = Field(default=None, max_length=1024)


class PaymentVerificationRequest(BaseModel):
    """Payload recording a verified payment."""

    reference: str = Field(min_length=1, max_length=255)
    verified_by: str | None = Field(default=None, max_length=255)


class PaymentStartRequest(BaseModel):
    """Payload recording the gateway reference of a started checkout."""

    reference: str = Field(min_length=1, max_length=255)
