"""Callable booking procedures exposed as ``POST /rpc/<name>``."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from cabin_booking.api.deps import get_db_session
from cabin_booking.core.config import get_settings
from cabin_booking.core.errors import ReservationError, ReservationErrorKind
from cabin_booking.schemas.availability import (
    AvailabilityRequest,
    BookedRangeRead,
    CabinRequest,
    OccupiedNightsRead,
)
from cabin_booking.schemas.coupon import CouponValidateRequest, CouponValidationRead
from cabin_booking.schemas.pricing import (
    NightlyPriceRead,
    NightPriceRequest,
    PriceQuoteRead,
    PriceRangeRequest,
)
from cabin_booking.schemas.reservation import ReservationCreate
from cabin_booking.services import (
    availability_service,
    coupon_service,
    pricing_service,
    reservation_service,
)

router = APIRouter()

_settings = get_settings()


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    window = window_str.strip().lower()
    seconds_map = {
        "second": 1,
        "seconds": 1,
        "minute": 60,
        "minutes": 60,
        "hour": 3600,
        "hours": 3600,
        "day": 86400,
        "days": 86400,
    }
    seconds = seconds_map.get(window, fallback[1])
    return count, seconds


def _rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


_BOOKING_RATE_DEP = _rate_dependency(
    _parse_rate(_settings.rate_limit_booking, fallback=(10, 60))
)
_DEFAULT_RATE_DEP = _rate_dependency(
    _parse_rate(_settings.rate_limit_default, fallback=(100, 60))
)

_ERROR_STATUS = {
    ReservationErrorKind.CABIN_NOT_AVAILABLE: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.EXCEEDS_CAPACITY: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.INVALID_CHECK_IN_DATE: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.INVALID_DATE_RANGE: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.COUPON_INVALID: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.INVALID_GUEST_DETAILS: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.INVALID_PAYMENT_METHOD: status.HTTP_400_BAD_REQUEST,
    ReservationErrorKind.DATES_NOT_AVAILABLE: status.HTTP_409_CONFLICT,
    ReservationErrorKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _pricing_error(exc: ReservationError) -> HTTPException:
    code = (
        status.HTTP_404_NOT_FOUND
        if exc.kind is ReservationErrorKind.CABIN_NOT_AVAILABLE
        else status.HTTP_400_BAD_REQUEST
    )
    return HTTPException(status_code=code, detail=exc.to_detail())


@router.post(
    "/check_availability",
    response_model=bool,
    summary="Check whether a stay can be booked",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def check_availability(
    payload: AvailabilityRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> bool:
    return await availability_service.is_range_free(
        session,
        cabin_id=payload.cabin_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        exclude_reservation_id=payload.exclude_reservation_id,
    )


@router.post(
    "/calculate_reservation_price",
    response_model=PriceQuoteRead,
    summary="Quote a stay night by night",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def calculate_reservation_price(
    payload: PriceRangeRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PriceQuoteRead:
    """Return the total for ``[check_in, check_out)`` with a nightly breakdown."""
    try:
        quote = await pricing_service.price_for_range(
            session,
            cabin_id=payload.cabin_id,
            check_in=payload.check_in,
            check_out=payload.check_out,
        )
    except ReservationError as exc:
        raise _pricing_error(exc) from exc
    return PriceQuoteRead.model_validate(quote)


@router.post(
    "/get_price_for_date",
    response_model=NightlyPriceRead,
    summary="Resolve the price of one night",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def get_price_for_date(
    payload: NightPriceRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> NightlyPriceRead:
    try:
        price = await pricing_service.price_for_night(
            session, cabin_id=payload.cabin_id, night=payload.night
        )
    except ReservationError as exc:
        raise _pricing_error(exc) from exc
    return NightlyPriceRead.model_validate(price)


@router.post(
    "/get_cabin_booked_dates",
    response_model=list[BookedRangeRead],
    summary="List unavailable intervals for a cabin calendar",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def get_cabin_booked_dates(
    payload: CabinRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> list[BookedRangeRead]:
    ranges = await availability_service.get_cabin_booked_dates(
        session, cabin_id=payload.cabin_id
    )
    return [BookedRangeRead.model_validate(item) for item in ranges]


@router.post(
    "/get_occupied_nights",
    response_model=OccupiedNightsRead,
    summary="List every occupied night of a cabin",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def get_occupied_nights(
    payload: CabinRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> OccupiedNightsRead:
    """Expanded nights plus the check-out days a calendar must keep selectable."""
    nights = await availability_service.get_occupied_nights(
        session, cabin_id=payload.cabin_id
    )
    ranges = await availability_service.get_cabin_booked_dates(
        session, cabin_id=payload.cabin_id
    )
    return OccupiedNightsRead(
        cabin_id=payload.cabin_id,
        nights=sorted(nights),
        check_in_boundaries=availability_service.check_in_boundaries(ranges),
    )


@router.post(
    "/validate_coupon",
    response_model=CouponValidationRead,
    response_model_exclude_none=True,
    summary="Validate a coupon without redeeming it",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def validate_coupon(
    payload: CouponValidateRequest,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CouponValidationRead:
    validation = await coupon_service.validate_coupon(
        session, code=payload.code, total_amount=payload.total_amount
    )
    return CouponValidationRead.model_validate(validation)


@router.post(
    "/create_reservation",
    summary="Create a reservation atomically",
    status_code=status.HTTP_201_CREATED,
    dependencies=[_BOOKING_RATE_DEP],
)
async def create_reservation(
    payload: ReservationCreate,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> JSONResponse:
    """Validate, price and persist a booking.

    The body is always the structured result; the status code reflects the
    error kind on failure.
    """
    result = await reservation_service.create_reservation(
        session,
        cabin_id=payload.cabin_id,
        guest_name=payload.guest_name,
        guest_phone=payload.guest_phone,
        guest_email=payload.guest_email,
        guests_count=payload.guests_count,
        check_in=payload.check_in,
        check_out=payload.check_out,
        payment_method=payload.payment_method,
        coupon_code=payload.coupon_code,
    )
    if result.success:
        status_code = status.HTTP_201_CREATED
    else:
        assert result.error is not None
        status_code = _ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=status_code, content=result.to_dict())
