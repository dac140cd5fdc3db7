"""Availability schema definitions."""

from __future__ import annotations

import datetime
import uuid

from pydantic import BaseModel, ConfigDict, Field

from cabin_booking.schemas.common import CalendarDate


class CabinRequest(BaseModel):
    """Identifies a cabin."""

    cabin_id: int = Field(gt=0)


class AvailabilityRequest(BaseModel):
    """Input for ``check_availability``."""

    cabin_id: int = Field(gt=0)
    check_in: CalendarDate
    check_out: CalendarDate
    exclude_reservation_id: uuid.UUID | None = None


class BookedRangeRead(BaseModel):
    """Half-open unavailable interval ``[check_in_date, check_out_date)``."""

    check_in_date: datetime.date
    check_out_date: datetime.date
    source: str

    model_config = ConfigDict(from_attributes=True)


class OccupiedNightsRead(BaseModel):
    """Expanded set of occupied nights for a cabin."""

    cabin_id: int
    nights: list[datetime.date]
    check_in_boundaries: list[datetime.date] = Field(default_factory=list)
