"""Coupon validation and redemption.

Validation is a pure read and may be retried freely. Redemption increments
``used_count`` and must only run inside the reservation transaction that
consumes the coupon.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cabin_booking.models import Coupon, DiscountType
from cabin_booking.services.pricing_service import to_irr

MSG_NOT_FOUND = "Coupon not found"
MSG_INACTIVE = "Coupon is not active"
MSG_EXPIRED = "Coupon has expired"
MSG_EXHAUSTED = "Coupon usage limit reached"


@dataclass(slots=True)
class CouponValidation:
    """Outcome of validating a coupon against a total amount."""

    valid: bool
    code: str | None = None
    discount_amount: Decimal | None = None
    final_price: Decimal | None = None
    discount_type: DiscountType | None = None
    value: Decimal | None = None
    message: str | None = None
    coupon_id: uuid.UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.valid:
            return {"valid": False, "message": self.message}
        return {
            "valid": True,
            "code": self.code,
            "discount_amount": str(self.discount_amount),
            "final_price": str(self.final_price),
            "type": self.discount_type.value if self.discount_type else None,
            "value": str(self.value),
        }


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


async def get_coupon_by_code(session: AsyncSession, code: str) -> Coupon | None:
    normalized = normalize_code(code)
    if not normalized:
        return None
    result = await session.execute(
        select(Coupon).where(func.upper(Coupon.code) == normalized)
    )
    return result.scalars().first()


def coupon_rejection_reason(coupon: Coupon | None, *, now: datetime) -> str | None:
    """Return why a coupon cannot be used right now, or ``None`` if it can."""
    if coupon is None:
        return MSG_NOT_FOUND
    if not coupon.is_active:
        return MSG_INACTIVE
    if coupon.expires_at is not None and _coerce_utc(coupon.expires_at) <= now:
        return MSG_EXPIRED
    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        return MSG_EXHAUSTED
    return None


def compute_discount(coupon: Coupon, total_amount: Decimal) -> Decimal:
    """Discount in IRR; never larger than the total."""
    total = to_irr(total_amount)
    value = Decimal(coupon.discount_value)
    if coupon.discount_type is DiscountType.PERCENT:
        discount = to_irr(total * value / Decimal("100"))
    else:
        discount = to_irr(value)
    return min(discount, total)


async def validate_coupon(
    session: AsyncSession,
    *,
    code: str,
    total_amount: Decimal,
    now: datetime | None = None,
) -> CouponValidation:
    """Check a coupon and compute the would-be discount without redeeming it."""
    coupon = await get_coupon_by_code(session, code)
    reason = coupon_rejection_reason(coupon, now=_coerce_utc(now or datetime.now(UTC)))
    if reason is not None:
        return CouponValidation(valid=False, message=reason)

    assert coupon is not None
    discount = compute_discount(coupon, total_amount)
    return CouponValidation(
        valid=True,
        code=coupon.code,
        discount_amount=discount,
        final_price=to_irr(total_amount) - discount,
        discount_type=coupon.discount_type,
        value=Decimal(coupon.discount_value),
        coupon_id=coupon.id,
    )


async def redeem_coupon(session: AsyncSession, *, coupon_id: uuid.UUID) -> bool:
    """Increment ``used_count`` if the coupon still has uses left.

    The guard lives in the UPDATE itself so two transactions racing for the
    last use cannot both succeed. Returns ``False`` when nothing was updated.
    """
    result = await session.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon_id,
            Coupon.is_active.is_(True),
            or_(Coupon.max_uses.is_(None), Coupon.used_count < Coupon.max_uses),
        )
        .values(used_count=Coupon.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
