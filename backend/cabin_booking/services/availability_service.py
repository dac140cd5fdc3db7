"""Calendar and availability index for cabins.

A night is occupied when an active reservation covers it, when a blocked date
applies to it (cabin-scoped or global) or when a daily price row marks it as
blocked. Reads here take no locks; the booking transaction re-checks under lock.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cabin_booking.core.dates import (
    expand_nights,
    local_today,
    max_stay_nights,
    nights_between,
)
from cabin_booking.models import (
    ACTIVE_RESERVATION_STATUSES,
    BlockedDate,
    Cabin,
    DailyPrice,
    Reservation,
)


@dataclass(slots=True)
class BookedRange:
    """Half-open ``[check_in_date, check_out_date)`` interval shown as unavailable."""

    check_in_date: date
    check_out_date: date
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "check_in_date": self.check_in_date.isoformat(),
            "check_out_date": self.check_out_date.isoformat(),
            "source": self.source,
        }


async def _reserved_ranges(
    session: AsyncSession,
    *,
    cabin_id: int,
    start: date,
    end: date | None,
    exclude_reservation_id: uuid.UUID | None = None,
) -> list[tuple[date, date]]:
    stmt = select(Reservation.check_in_date, Reservation.check_out_date).where(
        Reservation.cabin_id == cabin_id,
        Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
        Reservation.check_out_date > start,
    )
    if end is not None:
        stmt = stmt.where(Reservation.check_in_date < end)
    if exclude_reservation_id is not None:
        stmt = stmt.where(Reservation.id != exclude_reservation_id)
    result = await session.execute(stmt.order_by(Reservation.check_in_date))
    return [(row.check_in_date, row.check_out_date) for row in result.all()]


async def _blocked_nights(
    session: AsyncSession,
    *,
    cabin_id: int,
    start: date,
    end: date | None,
) -> set[date]:
    blocked_stmt = select(BlockedDate.date).where(
        or_(BlockedDate.cabin_id == cabin_id, BlockedDate.cabin_id.is_(None)),
        BlockedDate.date >= start,
    )
    daily_stmt = select(DailyPrice.date).where(
        or_(DailyPrice.cabin_id == cabin_id, DailyPrice.cabin_id.is_(None)),
        DailyPrice.is_blocked.is_(True),
        DailyPrice.date >= start,
    )
    if end is not None:
        blocked_stmt = blocked_stmt.where(BlockedDate.date < end)
        daily_stmt = daily_stmt.where(DailyPrice.date < end)

    nights = set((await session.execute(blocked_stmt)).scalars().all())
    nights.update((await session.execute(daily_stmt)).scalars().all())
    return nights


async def find_conflicting_nights(
    session: AsyncSession,
    *,
    cabin_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: uuid.UUID | None = None,
) -> set[date]:
    """Return the nights of ``[check_in, check_out)`` that are already taken."""
    requested = set(expand_nights(check_in, check_out))
    conflicts: set[date] = set()
    for reserved_in, reserved_out in await _reserved_ranges(
        session,
        cabin_id=cabin_id,
        start=check_in,
        end=check_out,
        exclude_reservation_id=exclude_reservation_id,
    ):
        conflicts.update(requested.intersection(expand_nights(reserved_in, reserved_out)))
    conflicts.update(
        await _blocked_nights(session, cabin_id=cabin_id, start=check_in, end=check_out)
    )
    return conflicts


async def get_occupied_nights(
    session: AsyncSession,
    *,
    cabin_id: int,
    start: date | None = None,
    end: date | None = None,
) -> set[date]:
    """Return occupied nights for a cabin, from ``start`` (default: today) onward.

    A missing cabin has no calendar, so an empty set is returned.
    """
    cabin = await session.get(Cabin, cabin_id)
    if cabin is None:
        return set()

    window_start = start or local_today()
    nights: set[date] = set()
    for reserved_in, reserved_out in await _reserved_ranges(
        session, cabin_id=cabin_id, start=window_start, end=end
    ):
        nights.update(
            night
            for night in expand_nights(reserved_in, reserved_out)
            if night >= window_start and (end is None or night < end)
        )
    nights.update(
        await _blocked_nights(session, cabin_id=cabin_id, start=window_start, end=end)
    )
    return nights


async def is_range_free(
    session: AsyncSession,
    *,
    cabin_id: int,
    check_in: date,
    check_out: date,
    exclude_reservation_id: uuid.UUID | None = None,
    today: date | None = None,
) -> bool:
    """Return whether every night of ``[check_in, check_out)`` can be booked."""
    if check_in >= check_out:
        return False
    if nights_between(check_in, check_out) > max_stay_nights():
        return False
    if check_in < (today or local_today()):
        return False

    cabin = await session.get(Cabin, cabin_id)
    if cabin is None or not cabin.is_available:
        return False

    conflicts = await find_conflicting_nights(
        session,
        cabin_id=cabin_id,
        check_in=check_in,
        check_out=check_out,
        exclude_reservation_id=exclude_reservation_id,
    )
    return not conflicts


async def get_cabin_booked_dates(
    session: AsyncSession,
    *,
    cabin_id: int,
    today: date | None = None,
) -> list[BookedRange]:
    """List unavailable intervals for calendar rendering.

    Reservations that have not checked out yet are returned as-is; blocked
    nights become one-night intervals.
    """
    cabin = await session.get(Cabin, cabin_id)
    if cabin is None:
        return []

    start = today or local_today()
    ranges = [
        BookedRange(check_in_date=reserved_in, check_out_date=reserved_out, source="reservation")
        for reserved_in, reserved_out in await _reserved_ranges(
            session, cabin_id=cabin_id, start=start, end=None
        )
    ]
    ranges.extend(
        BookedRange(check_in_date=night, check_out_date=night + timedelta(days=1), source="blocked")
        for night in await _blocked_nights(session, cabin_id=cabin_id, start=start, end=None)
    )
    ranges.sort(key=lambda item: (item.check_in_date, item.check_out_date))
    return ranges


def is_check_in_boundary(night: date, ranges: list[BookedRange]) -> bool:
    """Return True when ``night`` is only some stay's check-out day.

    Such a night is free for a new check-in even though a calendar shows a
    booking ending on it.
    """
    ends_here = any(item.check_out_date == night for item in ranges)
    occupied = any(item.check_in_date <= night < item.check_out_date for item in ranges)
    return ends_here and not occupied


def check_in_boundaries(ranges: list[BookedRange]) -> list[date]:
    """Return the check-out days in ``ranges`` that remain open for a new check-in."""
    ends = {item.check_out_date for item in ranges}
    return sorted(night for night in ends if is_check_in_boundary(night, ranges))
