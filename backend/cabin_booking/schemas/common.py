"""Shared schema types."""

from __future__ import annotations

import datetime
from typing import Annotated

from pydantic import BeforeValidator

from cabin_booking.core.dates import parse_calendar_date

# ``YYYY-MM-DD`` parsed as a plain calendar date; timestamps are rejected.
CalendarDate = Annotated[datetime.date, BeforeValidator(parse_calendar_date)]

__all__ = ["CalendarDate"]
