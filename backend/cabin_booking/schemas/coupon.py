"""Coupon schema definitions."""

from __future__ import annotations

from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from cabin_booking.models.coupon import DiscountType


class CouponValidateRequest(BaseModel):
    """Input payload for ``validate_coupon``."""

    code: str = Field(min_length=1, max_length=64)
    total_amount: Decimal = Field(ge=Decimal("0"))


class CouponValidationRead(BaseModel):
    """Validation outcome; discount fields are only present when valid."""

    valid: bool
    code: str | None = None
    discount_amount: Decimal | None = None
    final_price: Decimal | None = None
    type: DiscountType | None = Field(
        default=None, validation_alias=AliasChoices("discount_type", "type")
    )
    value: Decimal | None = None
    message: str | None = None

    model_config = ConfigDict(from_attributes=True)
