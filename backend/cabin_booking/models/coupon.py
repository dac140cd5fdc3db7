"""Discount coupon model."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from cabin_booking.db.base import Base
from cabin_booking.models.mixins import TimestampMixin


class DiscountType(str, enum.Enum):
    """Kinds of discounts a coupon can grant."""

    PERCENT = "percent"
    FIXED = "fixed"


class Coupon(TimestampMixin, Base):
    """Coupon codes; ``used_count`` only moves on successful redemption."""

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_coupons_used_count"),
        CheckConstraint("discount_value >= 0", name="ck_coupons_discount_value"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(DiscountType, values_callable=lambda cls: [m.value for m in cls]),
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    max_uses: Mapped[int | None] = mapped_column(Integer)
    used_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @validates("code")
    def _normalize_code(self, _key: str, value: str) -> str:
        return value.strip().upper()
