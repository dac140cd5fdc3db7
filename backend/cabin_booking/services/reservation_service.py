"""Reservation creation: validation, pricing and the atomic insert."""
from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Collection
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cabin_booking.core.dates import (
    local_today,
    max_stay_nights,
    nights_between,
    parse_calendar_date,
)
from cabin_booking.core.errors import ReservationError, ReservationErrorKind
from cabin_booking.models import (
    Cabin,
    PaymentMethod,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)
from cabin_booking.services import availability_service, coupon_service, pricing_service
from cabin_booking.services.pricing_service import PriceQuote, to_usd

logger = logging.getLogger(__name__)

_ONLINE_PAYMENT_METHODS = frozenset(
    {
        PaymentMethod.ONLINE_ZARINPAL,
        PaymentMethod.ONLINE_PAYPAL,
        PaymentMethod.CRYPTO_USDT,
    }
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(slots=True)
class CreateReservationResult:
    """Outcome of :func:`create_reservation`.

    On success the prices here are authoritative; callers charging a payment
    gateway must use them rather than re-deriving a total.
    """

    success: bool
    reservation_id: uuid.UUID | None = None
    status: ReservationStatus | None = None
    price_irr: Decimal | None = None
    price_usd: Decimal | None = None
    discount_irr: Decimal | None = None
    nights: int | None = None
    error: ReservationErrorKind | None = None
    message: str | None = None

    @classmethod
    def failure(cls, error: ReservationError) -> "CreateReservationResult":
        return cls(success=False, error=error.kind, message=error.message)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "error": self.error.value if self.error else None,
                "message": self.message,
            }
        return {
            "success": True,
            "reservation_id": str(self.reservation_id),
            "status": self.status.value if self.status else None,
            "price_irr": str(self.price_irr),
            "price_usd": f"{self.price_usd:.2f}",
            "discount_irr": str(self.discount_irr),
            "nights": self.nights,
        }


async def get_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
) -> Reservation | None:
    stmt = (
        select(Reservation)
        .options(selectinload(Reservation.cabin))
        .where(Reservation.id == reservation_id)
    )
    result = await session.execute(stmt)
    return result.scalars().one_or_none()


async def list_reservations(
    session: AsyncSession,
    *,
    cabin_id: int | None = None,
    statuses: Collection[ReservationStatus] | None = None,
    skip: int = 0,
    limit: int | None = None,
) -> list[Reservation]:
    """Return reservations newest first, optionally narrowed by cabin and status."""
    stmt = select(Reservation).options(selectinload(Reservation.cabin))
    if cabin_id is not None:
        stmt = stmt.where(Reservation.cabin_id == cabin_id)
    if statuses:
        stmt = stmt.where(Reservation.status.in_(list(statuses)))
    stmt = stmt.order_by(Reservation.created_at.desc(), Reservation.id)
    if skip:
        stmt = stmt.offset(skip)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _parse_stay_dates(
    check_in: date | str, check_out: date | str, *, today: date
) -> tuple[date, date]:
    try:
        check_in_date = parse_calendar_date(check_in)
    except ValueError as exc:
        raise ReservationError(
            ReservationErrorKind.INVALID_CHECK_IN_DATE, str(exc)
        ) from exc
    if check_in_date < today:
        raise ReservationError(
            ReservationErrorKind.INVALID_CHECK_IN_DATE,
            "Check-in date is in the past",
        )
    try:
        check_out_date = parse_calendar_date(check_out)
    except ValueError as exc:
        raise ReservationError(ReservationErrorKind.INVALID_DATE_RANGE, str(exc)) from exc
    if check_out_date <= check_in_date:
        raise ReservationError(
            ReservationErrorKind.INVALID_DATE_RANGE,
            "Check-out must be after check-in",
        )
    limit = max_stay_nights()
    if nights_between(check_in_date, check_out_date) > limit:
        raise ReservationError(
            ReservationErrorKind.INVALID_DATE_RANGE,
            f"Stays are limited to {limit} nights",
        )
    return check_in_date, check_out_date


def _normalize_guest(
    guest_name: str, guest_phone: str, guest_email: str | None
) -> tuple[str, str, str | None]:
    name = (guest_name or "").strip()
    phone = _WHITESPACE.sub("", guest_phone or "")
    if not name or not phone:
        raise ReservationError(
            ReservationErrorKind.INVALID_GUEST_DETAILS,
            "Guest name and phone are required",
        )
    return name, phone, (guest_email or "").strip() or None


def _coerce_payment_method(value: PaymentMethod | str) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError as exc:
        raise ReservationError(
            ReservationErrorKind.INVALID_PAYMENT_METHOD,
            f"Unknown payment method {value!r}",
        ) from exc


async def _lock_cabin(session: AsyncSession, cabin_id: int) -> Cabin | None:
    """Load the cabin row under an exclusive lock for the rest of the transaction.

    Every booking for the cabin takes this lock first, which serialises
    concurrent check-and-insert units on the same cabin.
    """
    result = await session.execute(
        select(Cabin)
        .where(Cabin.id == cabin_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _usd_discount(quote: PriceQuote, discount_irr: Decimal) -> Decimal:
    if not discount_irr or not quote.total_irr:
        return Decimal("0.00")
    return to_usd(quote.total_usd * discount_irr / quote.total_irr)


async def _insert_reservation(
    session: AsyncSession,
    *,
    cabin_id: int,
    guest_name: str,
    guest_phone: str,
    guest_email: str | None,
    guests_count: int,
    check_in: date | str,
    check_out: date | str,
    payment_method: PaymentMethod | str,
    coupon_code: str | None,
    today: date,
) -> tuple[Reservation, PriceQuote]:
    guest_name, guest_phone, guest_email = _normalize_guest(
        guest_name, guest_phone, guest_email
    )
    method = _coerce_payment_method(payment_method)

    cabin = await _lock_cabin(session, cabin_id)
    if cabin is None or not cabin.is_available:
        raise ReservationError(
            ReservationErrorKind.CABIN_NOT_AVAILABLE, "Cabin is not available"
        )
    if guests_count < 1 or guests_count > cabin.capacity:
        raise ReservationError(
            ReservationErrorKind.EXCEEDS_CAPACITY,
            f"Cabin sleeps at most {cabin.capacity} guests",
        )

    check_in_date, check_out_date = _parse_stay_dates(check_in, check_out, today=today)

    conflicts = await availability_service.find_conflicting_nights(
        session,
        cabin_id=cabin.id,
        check_in=check_in_date,
        check_out=check_out_date,
    )
    if conflicts:
        raise ReservationError(
            ReservationErrorKind.DATES_NOT_AVAILABLE,
            f"Cabin is already booked on {min(conflicts).isoformat()}",
        )

    quote = await pricing_service.price_for_range(
        session,
        cabin_id=cabin.id,
        check_in=check_in_date,
        check_out=check_out_date,
        cabin=cabin,
    )

    coupon_validation = None
    discount_irr = Decimal("0")
    if coupon_code and coupon_code.strip():
        coupon_validation = await coupon_service.validate_coupon(
            session, code=coupon_code, total_amount=quote.total_irr
        )
        if not coupon_validation.valid:
            raise ReservationError(
                ReservationErrorKind.COUPON_INVALID, coupon_validation.message
            )
        discount_irr = coupon_validation.discount_amount or Decimal("0")
    discount_usd = _usd_discount(quote, discount_irr)

    online = method in _ONLINE_PAYMENT_METHODS
    reservation = Reservation(
        cabin_id=cabin.id,
        guest_name=guest_name,
        guest_phone=guest_phone,
        guest_email=guest_email,
        guests_count=guests_count,
        check_in_date=check_in_date,
        check_out_date=check_out_date,
        nights_count=quote.nights,
        calculated_price_irr=quote.total_irr,
        calculated_price_usd=quote.total_usd,
        discount_amount_irr=discount_irr,
        discount_amount_usd=discount_usd,
        final_price_irr=quote.total_irr - discount_irr,
        final_price_usd=quote.total_usd - discount_usd,
        coupon_id=coupon_validation.coupon_id if coupon_validation else None,
        coupon_code=coupon_validation.code if coupon_validation else None,
        payment_method=method,
        payment_status=PaymentStatus.UNPAID,
        status=(
            ReservationStatus.PENDING_PAYMENT if online else ReservationStatus.PENDING
        ),
    )
    session.add(reservation)
    await session.flush()

    if coupon_validation is not None:
        assert coupon_validation.coupon_id is not None
        redeemed = await coupon_service.redeem_coupon(
            session, coupon_id=coupon_validation.coupon_id
        )
        if not redeemed:
            raise ReservationError(
                ReservationErrorKind.COUPON_INVALID, coupon_service.MSG_EXHAUSTED
            )

    await session.commit()
    return reservation, quote


async def create_reservation(
    session: AsyncSession,
    *,
    cabin_id: int,
    guest_name: str,
    guest_phone: str,
    guest_email: str | None,
    guests_count: int,
    check_in: date | str,
    check_out: date | str,
    payment_method: PaymentMethod | str,
    coupon_code: str | None = None,
    today: date | None = None,
) -> CreateReservationResult:
    """Validate, price and persist a reservation in a single transaction.

    Failures are returned as structured results and leave nothing behind: the
    reservation insert and any coupon redemption commit or roll back together.
    """
    try:
        reservation, quote = await _insert_reservation(
            session,
            cabin_id=cabin_id,
            guest_name=guest_name,
            guest_phone=guest_phone,
            guest_email=guest_email,
            guests_count=guests_count,
            check_in=check_in,
            check_out=check_out,
            payment_method=payment_method,
            coupon_code=coupon_code,
            today=today or local_today(),
        )
    except ReservationError as exc:
        await session.rollback()
        logger.info("Reservation rejected for cabin %s: %s", cabin_id, exc.kind.value)
        return CreateReservationResult.failure(exc)
    except IntegrityError:
        await session.rollback()
        logger.warning(
            "Reservation for cabin %s rejected by the overlap constraint", cabin_id
        )
        return CreateReservationResult.failure(
            ReservationError(
                ReservationErrorKind.DATES_NOT_AVAILABLE,
                "Dates are no longer available",
            )
        )
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to create reservation for cabin %s", cabin_id)
        return CreateReservationResult.failure(
            ReservationError(
                ReservationErrorKind.INTERNAL_ERROR,
                "Something went wrong, please try again",
            )
        )

    logger.info(
        "Reservation %s created for cabin %s (%s nights, %s IRR)",
        reservation.id,
        cabin_id,
        quote.nights,
        reservation.final_price_irr,
    )
    return CreateReservationResult(
        success=True,
        reservation_id=reservation.id,
        status=reservation.status,
        price_irr=reservation.final_price_irr,
        price_usd=reservation.final_price_usd,
        discount_irr=reservation.discount_amount_irr,
        nights=quote.nights,
    )
