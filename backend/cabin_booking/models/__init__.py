"""ORM models package export."""

from cabin_booking.models.blocked_date import BlockedDate
from cabin_booking.models.cabin import Cabin
from cabin_booking.models.coupon import Coupon, DiscountType
from cabin_booking.models.pricing import DailyPrice, SeasonalPrice, SeasonType
from cabin_booking.models.reservation import (
    ACTIVE_RESERVATION_STATUSES,
    TERMINAL_RESERVATION_STATUSES,
    PaymentMethod,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)

__all__ = [
    "ACTIVE_RESERVATION_STATUSES",
    "TERMINAL_RESERVATION_STATUSES",
    "BlockedDate",
    "Cabin",
    "Coupon",
    "DailyPrice",
    "DiscountType",
    "PaymentMethod",
    "PaymentStatus",
    "Reservation",
    "ReservationStatus",
    "SeasonalPrice",
    "SeasonType",
]
