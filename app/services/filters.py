from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from app.schemas.booking import Booking, BookingStatus
from app.services.intervals import DateInterval, intersects_range

ALL_STATUSES = "all"


def _contains_ci(value: str | None, term: str) -> bool:
    if value is None:
        return False
    return term in str(value).lower()


def normalize_status(status: str | BookingStatus | None) -> BookingStatus | None:
    """Map ``None``/``"all"`` to no filter, anything else to a status."""
    if status is None or isinstance(status, BookingStatus):
        return status
    normalized = status.strip().lower()
    if not normalized or normalized == ALL_STATUSES:
        return None
    return BookingStatus(normalized)


@dataclass(frozen=True)
class BookingFilter:
    property_id: str | None = None
    customer_id: str | None = None
    status: BookingStatus | None = None
    search: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    starting_from: date | None = None
    exclude_cancelled: bool = False

    @property
    def search_term(self) -> str | None:
        if self.search is None:
            return None
        term = self.search.strip().lower()
        return term or None

    @property
    def needs_names(self) -> bool:
        return self.search_term is not None

    def matches(
        self,
        booking: Booking,
        property_names: Mapping[str, str] | None = None,
        customer_names: Mapping[str, str] | None = None,
    ) -> bool:
        if self.property_id is not None and booking.property_id != self.property_id:
            return False
        if self.customer_id is not None and booking.customer_id != self.customer_id:
            return False
        if self.status is not None and booking.status != self.status:
            return False

        term = self.search_term
        if term is not None:
            property_names = property_names or {}
            customer_names = customer_names or {}
            if not (
                _contains_ci(property_names.get(booking.property_id), term)
                or _contains_ci(customer_names.get(booking.customer_id), term)
                or _contains_ci(booking.id, term)
            ):
                return False

        if self.exclude_cancelled and booking.status is BookingStatus.CANCELLED:
            return False
        if self.starting_from is not None and booking.start_date < self.starting_from:
            return False

        if self.date_from is not None or self.date_to is not None:
            interval = DateInterval(booking.start_date, booking.end_date)
            if not intersects_range(interval, self.date_from, self.date_to):
                return False

        return True


def apply_filter(
    bookings: Iterable[Booking],
    booking_filter: BookingFilter,
    property_names: Mapping[str, str] | None = None,
    customer_names: Mapping[str, str] | None = None,
) -> list[Booking]:
    """AND-combine every predicate of ``booking_filter``; input order is kept."""
    return [
        booking
        for booking in bookings
        if booking_filter.matches(booking, property_names, customer_names)
    ]
