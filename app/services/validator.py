from __future__ import annotations

from app.core.exceptions import ConflictError, ValidationError
from app.services.availability import AvailabilityIndex
from app.services.intervals import DateInterval


def validate_range(interval: DateInterval) -> None:
    if not interval.is_valid:
        raise ValidationError("invalid_range", "Check-out must be after check-in.")


def validate_guest_count(guest_count: int) -> None:
    if guest_count < 1:
        raise ValidationError("invalid_guest_count", "Guest count must be at least 1.")


class ConflictValidator:
    """Gatekeeper run before any write that changes a booking's property or dates.

    Callers must hold the property's lock from ``AvailabilityIndex.locked``
    across validation and the subsequent store/index writes.
    """

    def __init__(self, index: AvailabilityIndex):
        self.index = index

    def validate(
        self,
        property_id: str,
        interval: DateInterval,
        guest_count: int,
        exclude_booking_id: str | None = None,
    ) -> None:
        validate_range(interval)
        validate_guest_count(guest_count)

        conflicting_id = self.index.find_conflict(
            property_id, interval, exclude_booking_id=exclude_booking_id
        )
        if conflicting_id is not None:
            raise ConflictError(conflicting_id)
