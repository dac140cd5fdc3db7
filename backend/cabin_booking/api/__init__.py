"""HTTP routers; mounted under the versioned prefix by ``cabin_booking.main``."""
