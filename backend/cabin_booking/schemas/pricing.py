"""Pricing schema definitions."""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cabin_booking.schemas.common import CalendarDate


class PriceRangeRequest(BaseModel):
    """Input payload for ``calculate_reservation_price``."""

    cabin_id: int = Field(gt=0)
    check_in: CalendarDate
    check_out: CalendarDate


class NightPriceRequest(BaseModel):
    """Input payload for ``get_price_for_date``."""

    cabin_id: int = Field(gt=0)
    night: CalendarDate = Field(alias="date")

    model_config = ConfigDict(populate_by_name=True)


class NightlyPriceRead(BaseModel):
    """Resolved price of a single night."""

    night: datetime.date = Field(
        validation_alias=AliasChoices("night", "date"), serialization_alias="date"
    )
    price_irr: Decimal
    price_usd: Decimal
    source: str
    blocked: bool

    model_config = ConfigDict(from_attributes=True)


class PriceQuoteRead(BaseModel):
    """Aggregated price for a stay."""

    total_irr: Decimal
    total_usd: Decimal
    nights: int
    items: list[NightlyPriceRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
