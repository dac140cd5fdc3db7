"""Reservation lifecycle API."""

from __future__ import annotations

import uuid
from collections.abc import Awaitable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cabin_booking.api import deps
from cabin_booking.core.errors import (
    IllegalTransitionError,
    ReservationNotFoundError,
)
from cabin_booking.models import Reservation, ReservationStatus
from cabin_booking.schemas.reservation import (
    PaymentStartRequest,
    PaymentVerificationRequest,
    ReservationCancelRequest,
    ReservationListItem,
    ReservationRead,
)
from cabin_booking.services import lifecycle_service, reservation_service

router = APIRouter()


async def _run_transition(operation: Awaitable[Reservation]) -> ReservationRead:
    try:
        reservation = await operation
    except ReservationNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_detail()
        ) from exc
    except IllegalTransitionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=exc.to_detail()
        ) from exc
    return ReservationRead.model_validate(reservation)


@router.get("", response_model=list[ReservationListItem], summary="List reservations")
async def list_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    cabin_id: int | None = None,
    statuses: Annotated[list[ReservationStatus] | None, Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[ReservationListItem]:
    """List reservations newest first, optionally for one cabin and some statuses."""
    reservations = await reservation_service.list_reservations(
        session,
        cabin_id=cabin_id,
        statuses=statuses,
        skip=max(skip, 0),
        limit=min(max(limit, 1), 100),
    )
    return [ReservationListItem.model_validate(obj) for obj in reservations]


@router.get(
    "/{reservation_id}",
    response_model=ReservationRead,
    summary="Get reservation",
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    if reservation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ReservationNotFoundError().to_detail(),
        )
    return ReservationRead.model_validate(reservation)


@router.post(
    "/{reservation_id}/confirm",
    response_model=ReservationRead,
    summary="Confirm a pending reservation",
)
async def confirm_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    return await _run_transition(
        lifecycle_service.confirm(session, reservation_id=reservation_id)
    )


@router.post(
    "/{reservation_id}/cancel",
    response_model=ReservationRead,
    summary="Cancel a reservation",
)
async def cancel_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationCancelRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    """Cancel the stay and release its nights for new bookings."""
    return await _run_transition(
        lifecycle_service.cancel(
            session, reservation_id=reservation_id, reason=payload.reason
        )
    )


@router.post(
    "/{reservation_id}/verify-payment",
    response_model=ReservationRead,
    summary="Record a verified payment",
)
async def verify_payment(
    reservation_id: uuid.UUID,
    payload: PaymentVerificationRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    return await _run_transition(
        lifecycle_service.verify_payment(
            session,
            reservation_id=reservation_id,
            reference=payload.reference,
            verified_by=payload.verified_by,
        )
    )


@router.post(
    "/{reservation_id}/start-payment",
    response_model=ReservationRead,
    summary="Record the start of gateway checkout",
)
async def start_payment(
    reservation_id: uuid.UUID,
    payload: PaymentStartRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    return await _run_transition(
        lifecycle_service.start_payment(
            session, reservation_id=reservation_id, reference=payload.reference
        )
    )


@router.post(
    "/{reservation_id}/fail-payment",
    response_model=ReservationRead,
    summary="Mark an online payment as failed",
)
async def fail_payment(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    return await _run_transition(
        lifecycle_service.fail_payment(session, reservation_id=reservation_id)
    )


@router.post(
    "/{reservation_id}/complete",
    response_model=ReservationRead,
    summary="Complete a confirmed stay",
)
async def complete_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    return await _run_transition(
        lifecycle_service.complete(session, reservation_id=reservation_id)
    )


@router.post(
    "/{reservation_id}/refund",
    response_model=ReservationRead,
    summary="Refund a paid reservation",
)
async def refund_payment(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    return await _run_transition(
        lifecycle_service.refund_payment(session, reservation_id=reservation_id)
    )
