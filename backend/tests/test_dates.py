"""Tests for calendar date helpers."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from cabin_booking.core.dates import expand_nights, nights_between, parse_calendar_date
from cabin_booking.services.availability_service import BookedRange, is_check_in_boundary


def test_expand_nights_excludes_check_out() -> None:
    nights = list(expand_nights(date(2026, 3, 1), date(2026, 3, 4)))
    assert nights == [date(2026, 3, 1), date(2026, 3, 2), date(2026, 3, 3)]
    assert nights_between(date(2026, 3, 1), date(2026, 3, 4)) == 3


def test_expand_nights_empty_for_inverted_range() -> None:
    assert list(expand_nights(date(2026, 3, 4), date(2026, 3, 4))) == []
    assert list(expand_nights(date(2026, 3, 5), date(2026, 3, 4))) == []


def test_expand_nights_crosses_month_end() -> None:
    nights = list(expand_nights(date(2026, 2, 27), date(2026, 3, 2)))
    assert nights == [date(2026, 2, 27), date(2026, 2, 28), date(2026, 3, 1)]


def test_parse_calendar_date_accepts_iso_strings() -> None:
    assert parse_calendar_date("2026-03-01") == date(2026, 3, 1)
    assert parse_calendar_date(" 2026-03-01 ") == date(2026, 3, 1)
    assert parse_calendar_date(date(2026, 3, 1)) == date(2026, 3, 1)


@pytest.mark.parametrize(
    "value",
    ["2026-3-1", "2026-03-01T00:00:00Z", "01/03/2026", "2026-02-30", "", "tomorrow"],
)
def test_parse_calendar_date_rejects_malformed(value: str) -> None:
    with pytest.raises(ValueError):
        parse_calendar_date(value)


def test_parse_calendar_date_rejects_timestamps() -> None:
    with pytest.raises(ValueError):
        parse_calendar_date(datetime(2026, 3, 1, 23, 30))


def test_check_out_day_is_a_check_in_boundary() -> None:
    ranges = [
        BookedRange(date(2026, 3, 5), date(2026, 3, 8), "reservation"),
        BookedRange(date(2026, 3, 10), date(2026, 3, 12), "reservation"),
    ]
    assert is_check_in_boundary(date(2026, 3, 8), ranges)
    assert not is_check_in_boundary(date(2026, 3, 7), ranges)
    assert not is_check_in_boundary(date(2026, 3, 9), ranges)


def test_boundary_shared_with_next_check_in_is_occupied() -> None:
    ranges = [
        BookedRange(date(2026, 3, 5), date(2026, 3, 8), "reservation"),
        BookedRange(date(2026, 3, 8), date(2026, 3, 9), "reservation"),
    ]
    assert not is_check_in_boundary(date(2026, 3, 8), ranges)
