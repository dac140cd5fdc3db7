"""Calendar date helpers shared by availability, pricing and booking.

Reservation ranges are half-open: ``[check_in, check_out)``. The check-out date
is never an occupied night, which is what lets a new stay begin on the day the
previous one ends.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from cabin_booking.core.config import get_settings

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_calendar_date(value: date | str) -> date:
    """Parse a ``YYYY-MM-DD`` value as a plain calendar date.

    Instants are rejected rather than converted so that no timezone shift can
    move a booking by a day.
    """
    if isinstance(value, datetime):
        raise ValueError("Expected a calendar date, not a timestamp")
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _ISO_DATE.match(text):
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")
    return date.fromisoformat(text)


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def expand_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Yield every occupied night of ``[check_in, check_out)``."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


def max_stay_nights() -> int:
    return get_settings().max_stay_nights


def local_today() -> date:
    """Return today's date in the booking timezone."""
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.booking_timezone)).date()


__all__ = [
    "expand_nights",
    "local_today",
    "max_stay_nights",
    "nights_between",
    "parse_calendar_date",
]
