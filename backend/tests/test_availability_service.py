"""Tests for the availability index."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from cabin_booking.core.config import get_settings
from cabin_booking.db.session import get_sessionmaker
from cabin_booking.models import (
    BlockedDate,
    DailyPrice,
    PaymentMethod,
    Reservation,
    ReservationStatus,
)
from cabin_booking.services import availability_service

pytestmark = pytest.mark.asyncio

TODAY = date(2026, 3, 1)


async def _seed_reservation(
    db_url: str,
    cabin_id: int,
    check_in: date,
    check_out: date,
    *,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> uuid.UUID:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        nights = (check_out - check_in).days
        reservation = Reservation(
            cabin_id=cabin_id,
            guest_name="Sara Ahmadi",
            guest_phone="09121234567",
            guests_count=2,
            check_in_date=check_in,
            check_out_date=check_out,
            nights_count=nights,
            calculated_price_irr=Decimal("1000000") * nights,
            calculated_price_usd=Decimal("20.00") * nights,
            final_price_irr=Decimal("1000000") * nights,
            final_price_usd=Decimal("20.00") * nights,
            payment_method=PaymentMethod.CASH_ON_ARRIVAL,
            status=status,
        )
        session.add(reservation)
        await session.commit()
        return reservation.id


async def _is_free(db_url: str, cabin_id: int, check_in: date, check_out: date, **kwargs) -> bool:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        return await availability_service.is_range_free(
            session,
            cabin_id=cabin_id,
            check_in=check_in,
            check_out=check_out,
            today=TODAY,
            **kwargs,
        )


async def test_overlapping_range_is_not_free(cabin_id: int, db_url: str) -> None:
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8))

    assert not await _is_free(db_url, cabin_id, date(2026, 3, 6), date(2026, 3, 9))
    assert not await _is_free(db_url, cabin_id, date(2026, 3, 4), date(2026, 3, 6))
    assert not await _is_free(db_url, cabin_id, date(2026, 3, 1), date(2026, 3, 20))


async def test_back_to_back_stays_are_allowed(cabin_id: int, db_url: str) -> None:
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8))

    assert await _is_free(db_url, cabin_id, date(2026, 3, 8), date(2026, 3, 10))
    assert await _is_free(db_url, cabin_id, date(2026, 3, 3), date(2026, 3, 5))


async def test_cancelled_reservation_releases_nights(cabin_id: int, db_url: str) -> None:
    await _seed_reservation(
        db_url,
        cabin_id,
        date(2026, 3, 5),
        date(2026, 3, 8),
        status=ReservationStatus.CANCELLED,
    )

    assert await _is_free(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8))


async def test_excluded_reservation_is_ignored(cabin_id: int, db_url: str) -> None:
    reservation_id = await _seed_reservation(
        db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8)
    )

    assert await _is_free(
        db_url,
        cabin_id,
        date(2026, 3, 6),
        date(2026, 3, 9),
        exclude_reservation_id=reservation_id,
    )


async def test_invalid_ranges_are_not_free(cabin_id: int, make_cabin, db_url: str) -> None:
    closed_cabin_id = await make_cabin(is_available=False)

    assert not await _is_free(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 5))
    assert not await _is_free(db_url, cabin_id, date(2026, 2, 27), date(2026, 3, 2))
    assert not await _is_free(db_url, closed_cabin_id, date(2026, 3, 5), date(2026, 3, 6))
    assert not await _is_free(db_url, 9999, date(2026, 3, 5), date(2026, 3, 6))


async def test_blocked_dates_occupy_nights(cabin_id: int, make_cabin, db_url: str) -> None:
    other_cabin_id = await make_cabin()
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add_all(
            [
                BlockedDate(cabin_id=cabin_id, date=date(2026, 3, 10), reason_en="Repairs"),
                BlockedDate(cabin_id=None, date=date(2026, 3, 20), reason_en="Closed"),
                DailyPrice(
                    cabin_id=other_cabin_id,
                    date=date(2026, 3, 12),
                    price_irr=Decimal("0"),
                    price_usd=Decimal("0"),
                    is_blocked=True,
                ),
            ]
        )
        await session.commit()

    assert not await _is_free(db_url, cabin_id, date(2026, 3, 9), date(2026, 3, 11))
    assert await _is_free(db_url, other_cabin_id, date(2026, 3, 9), date(2026, 3, 11))
    assert not await _is_free(db_url, other_cabin_id, date(2026, 3, 19), date(2026, 3, 21))
    assert not await _is_free(db_url, other_cabin_id, date(2026, 3, 12), date(2026, 3, 13))
    assert await _is_free(db_url, cabin_id, date(2026, 3, 11), date(2026, 3, 13))


async def test_occupied_nights_expand_half_open_ranges(cabin_id: int, db_url: str) -> None:
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8))
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 8), date(2026, 3, 9))

    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        nights = await availability_service.get_occupied_nights(
            session, cabin_id=cabin_id, start=TODAY
        )

    assert sorted(nights) == [
        date(2026, 3, 5),
        date(2026, 3, 6),
        date(2026, 3, 7),
        date(2026, 3, 8),
    ]


async def test_occupied_nights_for_unknown_cabin_is_empty(reset_database, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        nights = await availability_service.get_occupied_nights(
            session, cabin_id=9999, start=TODAY
        )
    assert nights == set()


async def test_booked_dates_list_current_and_future_stays(cabin_id: int, db_url: str) -> None:
    await _seed_reservation(db_url, cabin_id, date(2026, 2, 20), date(2026, 2, 25))
    await _seed_reservation(db_url, cabin_id, date(2026, 2, 28), date(2026, 3, 3))
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8))
    await _seed_reservation(
        db_url,
        cabin_id,
        date(2026, 3, 10),
        date(2026, 3, 12),
        status=ReservationStatus.CANCELLED,
    )
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add(BlockedDate(cabin_id=cabin_id, date=date(2026, 3, 15)))
        await session.commit()

    async with sessionmaker() as session:
        ranges = await availability_service.get_cabin_booked_dates(
            session, cabin_id=cabin_id, today=TODAY
        )

    assert [item.to_dict() for item in ranges] == [
        {"check_in_date": "2026-02-28", "check_out_date": "2026-03-03", "source": "reservation"},
        {"check_in_date": "2026-03-05", "check_out_date": "2026-03-08", "source": "reservation"},
        {"check_in_date": "2026-03-15", "check_out_date": "2026-03-16", "source": "blocked"},
    ]


async def test_stays_longer_than_max_stay_are_not_free(cabin_id: int, db_url: str) -> None:
    limit = get_settings().max_stay_nights

    assert await _is_free(db_url, cabin_id, TODAY, TODAY + timedelta(days=limit))
    assert not await _is_free(db_url, cabin_id, TODAY, TODAY + timedelta(days=limit + 1))


async def test_check_in_boundaries_follow_booked_ranges(cabin_id: int, db_url: str) -> None:
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 5), date(2026, 3, 8))
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 10), date(2026, 3, 12))
    await _seed_reservation(db_url, cabin_id, date(2026, 3, 12), date(2026, 3, 14))

    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        ranges = await availability_service.get_cabin_booked_dates(
            session, cabin_id=cabin_id, today=TODAY
        )

    assert availability_service.check_in_boundaries(ranges) == [
        date(2026, 3, 8),
        date(2026, 3, 14),
    ]
