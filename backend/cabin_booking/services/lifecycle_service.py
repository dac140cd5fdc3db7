"""Reservation lifecycle transitions.

Reservation status and payment status move independently: a cash-on-arrival
stay can be ``confirmed`` while still ``unpaid``. ``cancelled`` and
``completed`` are terminal.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cabin_booking.core.errors import (
    IllegalTransitionError,
    ReservationError,
    ReservationNotFoundError,
)
from cabin_booking.models import PaymentStatus, Reservation, ReservationStatus

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.PENDING_PAYMENT: {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.PENDING,
    },
    ReservationStatus.CONFIRMED: {
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
    },
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}


def _validate_status_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    allowed = _ALLOWED_STATUS_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise IllegalTransitionError(
            f"Invalid status transition from {current.value} to {target.value}"
        )


async def _load_for_update(session: AsyncSession, reservation_id: uuid.UUID) -> Reservation:
    result = await session.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if reservation is None:
        raise ReservationNotFoundError()
    return reservation


async def _apply_transition(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    action: str,
    mutate: Callable[[Reservation], None],
) -> Reservation:
    try:
        reservation = await _load_for_update(session, reservation_id)
        mutate(reservation)
        session.add(reservation)
        await session.commit()
    except ReservationError:
        await session.rollback()
        raise
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to %s reservation %s", action, reservation_id)
        raise
    logger.info(
        "Reservation %s %s (status=%s, payment=%s)",
        reservation_id,
        action,
        reservation.status.value,
        reservation.payment_status.value,
    )
    return reservation


def _now() -> datetime:
    return datetime.now(UTC)


async def confirm(session: AsyncSession, *, reservation_id: uuid.UUID) -> Reservation:
    """Manually confirm a pending reservation."""

    def _mutate(reservation: Reservation) -> None:
        _validate_status_transition(reservation.status, ReservationStatus.CONFIRMED)
        reservation.status = ReservationStatus.CONFIRMED
        reservation.confirmed_at = _now()

    return await _apply_transition(
        session, reservation_id=reservation_id, action="confirmed", mutate=_mutate
    )


async def cancel(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    reason: str | None = None,
) -> Reservation:
    """Cancel a reservation, releasing its nights."""

    def _mutate(reservation: Reservation) -> None:
        _validate_status_transition(reservation.status, ReservationStatus.CANCELLED)
        reservation.status = ReservationStatus.CANCELLED
        reservation.cancelled_at = _now()
        if reason:
            reservation.admin_notes = reason

    return await _apply_transition(
        session, reservation_id=reservation_id, action="cancelled", mutate=_mutate
    )


async def verify_payment(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    reference: str,
    verified_by: str | None = None,
) -> Reservation:
    """Record a verified payment and confirm the reservation in one step."""

    def _mutate(reservation: Reservation) -> None:
        if reservation.payment_status in {PaymentStatus.PAID, PaymentStatus.REFUNDED}:
            raise IllegalTransitionError(
                f"Payment is already {reservation.payment_status.value}"
            )
        if reservation.status is not ReservationStatus.CONFIRMED:
            _validate_status_transition(reservation.status, ReservationStatus.CONFIRMED)
            reservation.status = ReservationStatus.CONFIRMED
            reservation.confirmed_at = _now()
        reservation.payment_status = PaymentStatus.PAID
        reservation.payment_reference = reference
        reservation.payment_verified_at = _now()
        reservation.payment_verified_by = verified_by

    return await _apply_transition(
        session, reservation_id=reservation_id, action="payment verified", mutate=_mutate
    )


async def start_payment(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
    reference: str,
) -> Reservation:
    """Record that gateway checkout has started for a reservation awaiting payment."""

    def _mutate(reservation: Reservation) -> None:
        if reservation.status is not ReservationStatus.PENDING_PAYMENT:
            raise IllegalTransitionError(
                f"Only reservations awaiting payment can start payment, not {reservation.status.value}"
            )
        if reservation.payment_status not in {PaymentStatus.UNPAID, PaymentStatus.FAILED}:
            raise IllegalTransitionError(
                f"Payment is already {reservation.payment_status.value}"
            )
        reservation.payment_status = PaymentStatus.PENDING
        reservation.payment_reference = reference

    return await _apply_transition(
        session, reservation_id=reservation_id, action="payment started", mutate=_mutate
    )


async def fail_payment(session: AsyncSession, *, reservation_id: uuid.UUID) -> Reservation:
    """Mark an online payment as failed and fall back to manual handling."""

    def _mutate(reservation: Reservation) -> None:
        if reservation.status is not ReservationStatus.PENDING_PAYMENT:
            raise IllegalTransitionError(
                f"Only reservations awaiting payment can fail payment, not {reservation.status.value}"
            )
        _validate_status_transition(reservation.status, ReservationStatus.PENDING)
        reservation.status = ReservationStatus.PENDING
        reservation.payment_status = PaymentStatus.FAILED

    return await _apply_transition(
        session, reservation_id=reservation_id, action="payment failed", mutate=_mutate
    )


async def complete(session: AsyncSession, *, reservation_id: uuid.UUID) -> Reservation:
    """Close a confirmed stay after check-out."""

    def _mutate(reservation: Reservation) -> None:
        _validate_status_transition(reservation.status, ReservationStatus.COMPLETED)
        reservation.status = ReservationStatus.COMPLETED
        reservation.completed_at = _now()

    return await _apply_transition(
        session, reservation_id=reservation_id, action="completed", mutate=_mutate
    )


async def refund_payment(session: AsyncSession, *, reservation_id: uuid.UUID) -> Reservation:
    """Mark a paid reservation as refunded; the reservation status is untouched."""

    def _mutate(reservation: Reservation) -> None:
        if reservation.payment_status is not PaymentStatus.PAID:
            raise IllegalTransitionError(
                f"Cannot refund a payment that is {reservation.payment_status.value}"
            )
        reservation.payment_status = PaymentStatus.REFUNDED

    return await _apply_transition(
        session, reservation_id=reservation_id, action="refunded", mutate=_mutate
    )
