"""Service layer exports."""
from cabin_booking.services import (
    availability_service,
    coupon_service,
    lifecycle_service,
    pricing_service,
    reservation_service,
)

__all__ = [
    "availability_service",
    "coupon_service",
    "lifecycle_service",
    "pricing_service",
    "reservation_service",
]
