"""Error kinds reported by the reservation engine."""

from __future__ import annotations

import enum


class ReservationErrorKind(str, enum.Enum):
    """Structured failure kinds returned to callers instead of raw exceptions."""

    CABIN_NOT_AVAILABLE = "CABIN_NOT_AVAILABLE"
    EXCEEDS_CAPACITY = "EXCEEDS_CAPACITY"
    INVALID_CHECK_IN_DATE = "INVALID_CHECK_IN_DATE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    DATES_NOT_AVAILABLE = "DATES_NOT_AVAILABLE"
    COUPON_INVALID = "COUPON_INVALID"
    INVALID_GUEST_DETAILS = "INVALID_GUEST_DETAILS"
    INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ReservationError(ValueError):
    """Validation failure carrying a :class:`ReservationErrorKind`."""

    def __init__(self, kind: ReservationErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.message}


class IllegalTransitionError(ReservationError):
    """Lifecycle operation attempted from a terminal or incompatible state."""

    def __init__(self, message: str) -> None:
        super().__init__(ReservationErrorKind.ILLEGAL_TRANSITION, message)


class ReservationNotFoundError(ReservationError):
    def __init__(self, message: str = "Reservation not found") -> None:
        super().__init__(ReservationErrorKind.RESERVATION_NOT_FOUND, message)


__all__ = [
    "IllegalTransitionError",
    "ReservationError",
    "ReservationErrorKind",
    "ReservationNotFoundError",
]
