"""Domain errors raised by the booking core.

Routers translate these into HTTP responses; services never raise
``HTTPException`` directly.
"""

from __future__ import annotations


class BookingCoreError(Exception):
    """Base class for every error the booking core raises."""


class ValidationError(BookingCoreError):
    """Malformed input: bad date range, guest count, unknown reference."""

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or reason)


class ConflictError(BookingCoreError):
    """An active booking for the same property already holds the interval."""

    def __init__(self, conflicting_booking_id: str):
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(f"Interval conflicts with booking {conflicting_booking_id}")


class InvalidTransitionError(BookingCoreError):
    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid booking transition: {from_status} -> {to_status}")


class NotFoundError(BookingCoreError):
    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class SyncError(BookingCoreError):
    """External calendar failure. Never escapes the booking service."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)
