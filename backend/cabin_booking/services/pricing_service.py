"""Nightly price resolution for cabins.

Each night is priced by the first source that has an opinion about it:

1. a daily price row for that date (cabin-scoped beats global),
2. the active seasonal range containing it (narrowest range wins, then the
   most recently created, then the row id),
3. the cabin's base price.

Totals are the sum of nightly prices over ``[check_in, check_out)``.
"""

from __future__ import annotations

import datetime
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cabin_booking.core.dates import expand_nights, max_stay_nights, nights_between
from cabin_booking.core.errors import ReservationError, ReservationErrorKind
from cabin_booking.models import Cabin, DailyPrice, SeasonalPrice

IRR_PLACES = Decimal("1")
USD_PLACES = Decimal("0.01")

SOURCE_DAILY = "daily"
SOURCE_SEASONAL = "seasonal"
SOURCE_BASE = "base"


def to_irr(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(IRR_PLACES, rounding=ROUND_HALF_UP)


def to_usd(value: Decimal | float | str) -> Decimal:
    return Decimal(value).quantize(USD_PLACES, rounding=ROUND_HALF_UP)


@dataclass(slots=True)
class NightlyPrice:
    """Resolved price for a single night."""

    night: datetime.date
    price_irr: Decimal
    price_usd: Decimal
    source: str
    blocked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.night.isoformat(),
            "price_irr": str(self.price_irr),
            "price_usd": f"{self.price_usd:.2f}",
            "source": self.source,
            "blocked": self.blocked,
        }


@dataclass(slots=True)
class PriceQuote:
    """Aggregate price for a stay."""

    cabin_id: int
    check_in: datetime.date
    check_out: datetime.date
    nights: int
    total_irr: Decimal
    total_usd: Decimal
    items: list[NightlyPrice] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cabin_id": self.cabin_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "total_irr": str(self.total_irr),
            "total_usd": f"{self.total_usd:.2f}",
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(slots=True)
class _PriceContext:
    cabin: Cabin
    daily_by_date: dict[datetime.date, list[DailyPrice]]
    seasonal: list[SeasonalPrice]


PriceSource = Callable[[_PriceContext, datetime.date], NightlyPrice | None]


def _created_ts(row: DailyPrice | SeasonalPrice) -> float:
    created = row.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=datetime.UTC)
    return created.timestamp()


def _newest_first(rows: Sequence[DailyPrice]) -> list[DailyPrice]:
    return sorted(rows, key=lambda row: (_created_ts(row), str(row.id)), reverse=True)


def _daily_override(ctx: _PriceContext, night: datetime.date) -> NightlyPrice | None:
    rows = ctx.daily_by_date.get(night)
    if not rows:
        return None
    # Cabin-scoped rows are more specific than global ones.
    scoped = [row for row in rows if row.cabin_id is not None]
    row = _newest_first(scoped or rows)[0]
    return NightlyPrice(
        night=night,
        price_irr=to_irr(row.price_irr),
        price_usd=to_usd(row.price_usd),
        source=SOURCE_DAILY,
        blocked=row.is_blocked,
    )


def _seasonal_rank(season: SeasonalPrice) -> tuple[int, float, str]:
    return (season.span_days, -_created_ts(season), str(season.id))


def _seasonal_override(ctx: _PriceContext, night: datetime.date) -> NightlyPrice | None:
    candidates = [
        season
        for season in ctx.seasonal
        if season.start_date <= night <= season.end_date
    ]
    if not candidates:
        return None
    season = min(candidates, key=_seasonal_rank)
    return NightlyPrice(
        night=night,
        price_irr=to_irr(season.price_irr),
        price_usd=to_usd(season.price_usd),
        source=SOURCE_SEASONAL,
    )


def _base_price(ctx: _PriceContext, night: datetime.date) -> NightlyPrice | None:
    return NightlyPrice(
        night=night,
        price_irr=to_irr(ctx.cabin.base_price_irr),
        price_usd=to_usd(ctx.cabin.base_price_usd),
        source=SOURCE_BASE,
    )


_PRICE_SOURCES: tuple[PriceSource, ...] = (
    _daily_override,
    _seasonal_override,
    _base_price,
)


def _resolve(ctx: _PriceContext, night: datetime.date) -> NightlyPrice:
    for source in _PRICE_SOURCES:
        price = source(ctx, night)
        if price is not None:
            return price
    raise RuntimeError(f"No price source resolved {night}")  # pragma: no cover


async def _load_context(
    session: AsyncSession,
    *,
    cabin: Cabin,
    start: datetime.date,
    end: datetime.date,
) -> _PriceContext:
    daily_rows = (
        await session.execute(
            select(DailyPrice).where(
                or_(DailyPrice.cabin_id == cabin.id, DailyPrice.cabin_id.is_(None)),
                DailyPrice.date >= start,
                DailyPrice.date < end,
            )
        )
    ).scalars().all()
    daily_by_date: dict[datetime.date, list[DailyPrice]] = defaultdict(list)
    for row in daily_rows:
        daily_by_date[row.date].append(row)

    seasonal_rows = (
        await session.execute(
            select(SeasonalPrice).where(
                SeasonalPrice.cabin_id == cabin.id,
                SeasonalPrice.is_active.is_(True),
                SeasonalPrice.start_date < end,
                SeasonalPrice.end_date >= start,
            )
        )
    ).scalars().all()
    return _PriceContext(
        cabin=cabin, daily_by_date=dict(daily_by_date), seasonal=list(seasonal_rows)
    )


async def _require_cabin(session: AsyncSession, cabin_id: int) -> Cabin:
    cabin = await session.get(Cabin, cabin_id)
    if cabin is None:
        raise ReservationError(
            ReservationErrorKind.CABIN_NOT_AVAILABLE, "Cabin does not exist"
        )
    return cabin


async def price_for_night(
    session: AsyncSession,
    *,
    cabin_id: int,
    night: datetime.date,
) -> NightlyPrice:
    """Resolve the price of one night."""
    cabin = await _require_cabin(session, cabin_id)
    ctx = await _load_context(
        session, cabin=cabin, start=night, end=night + datetime.timedelta(days=1)
    )
    return _resolve(ctx, night)


async def price_for_range(
    session: AsyncSession,
    *,
    cabin_id: int,
    check_in: datetime.date,
    check_out: datetime.date,
    cabin: Cabin | None = None,
) -> PriceQuote:
    """Price every night of ``[check_in, check_out)`` and sum the totals."""
    nights = nights_between(check_in, check_out)
    if nights <= 0:
        raise ReservationError(
            ReservationErrorKind.INVALID_DATE_RANGE,
            "Check-out must be after check-in",
        )
    limit = max_stay_nights()
    if nights > limit:
        raise ReservationError(
            ReservationErrorKind.INVALID_DATE_RANGE,
            f"Stays are limited to {limit} nights",
        )
    if cabin is None:
        cabin = await _require_cabin(session, cabin_id)

    ctx = await _load_context(session, cabin=cabin, start=check_in, end=check_out)
    items = [_resolve(ctx, night) for night in expand_nights(check_in, check_out)]
    total_irr = sum((item.price_irr for item in items), Decimal("0"))
    total_usd = sum((item.price_usd for item in items), Decimal("0.00"))
    return PriceQuote(
        cabin_id=cabin.id,
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        total_irr=to_irr(total_irr),
        total_usd=to_usd(total_usd),
        items=items,
    )
