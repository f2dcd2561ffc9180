"""Calendar projections over a filtered booking set.

Month grid and day detail use closed-interval containment (the checkout
day is still marked), unlike conflict detection in the availability index.
"""

from __future__ import annotations

import calendar
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from app.schemas.booking import Booking, BookingStatus
from app.services.intervals import DateInterval, covers_day, iter_days, touches_range


def _sort_key(booking: Booking) -> tuple[date, str]:
    return booking.start_date, booking.id


def _interval(booking: Booking) -> DateInterval:
    return DateInterval(booking.start_date, booking.end_date)


def parse_month(month: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month."""
    try:
        year_text, month_text = month.strip().split("-")
        year, month_number = int(year_text), int(month_text)
        _, days_in_month = calendar.monthrange(year, month_number)
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid month '{month}'. Use YYYY-MM.") from None
    return date(year, month_number, 1), date(year, month_number, days_in_month)


@dataclass
class MonthView:
    month: str
    first_day: date
    last_day: date
    day_buckets: dict[date, list[Booking]]
    events: list[Booking] = field(default_factory=list)


def sort_bookings(bookings: Iterable[Booking]) -> list[Booking]:
    """List projection: ascending by start date, ties broken by id."""
    return sorted(bookings, key=_sort_key)


def bookings_on_day(bookings: Iterable[Booking], day: date) -> list[Booking]:
    return sort_bookings(booking for booking in bookings if covers_day(_interval(booking), day))


def build_month_view(bookings: Iterable[Booking], month: str) -> MonthView:
    first_day, last_day = parse_month(month)
    in_month = sort_bookings(
        booking
        for booking in bookings
        if touches_range(_interval(booking), first_day, last_day)
    )

    day_buckets: dict[date, list[Booking]] = {day: [] for day in iter_days(first_day, last_day)}
    for booking in in_month:
        # clamp to the month, both ends inclusive
        start = max(booking.start_date, first_day)
        end = min(booking.end_date, last_day)
        for day in iter_days(start, end):
            day_buckets[day].append(booking)

    return MonthView(
        month=f"{first_day.year:04d}-{first_day.month:02d}",
        first_day=first_day,
        last_day=last_day,
        day_buckets=day_buckets,
        events=in_month,
    )


@dataclass
class PropertyStats:
    property_id: str
    property_name: str | None
    booking_count: int


@dataclass
class CustomerStats:
    customer_id: str
    customer_name: str | None
    booking_count: int
    total_spent: float


@dataclass
class BookingStats:
    total: int = 0
    confirmed: int = 0
    starting_this_month: int = 0
    properties: list[PropertyStats] = field(default_factory=list)
    customers: list[CustomerStats] = field(default_factory=list)


def build_stats(
    bookings: Iterable[Booking],
    today: date,
    property_names: Mapping[str, str] | None = None,
    customer_names: Mapping[str, str] | None = None,
) -> BookingStats:
    property_names = property_names or {}
    customer_names = customer_names or {}
    rows = list(bookings)

    property_counts = Counter(booking.property_id for booking in rows)
    customer_counts: Counter[str] = Counter()
    customer_spent: dict[str, float] = defaultdict(float)
    for booking in rows:
        customer_counts[booking.customer_id] += 1
        customer_spent[booking.customer_id] += booking.total_amount

    properties = sorted(
        (
            PropertyStats(property_id, property_names.get(property_id), count)
            for property_id, count in property_counts.items()
        ),
        key=lambda stat: (-stat.booking_count, stat.property_name or "", stat.property_id),
    )
    customers = sorted(
        (
            CustomerStats(
                customer_id,
                customer_names.get(customer_id),
                count,
                round(customer_spent[customer_id], 2),
            )
            for customer_id, count in customer_counts.items()
        ),
        key=lambda stat: (-stat.booking_count, stat.customer_name or "", stat.customer_id),
    )

    return BookingStats(
        total=len(rows),
        confirmed=sum(1 for booking in rows if booking.status is BookingStatus.CONFIRMED),
        starting_this_month=sum(
            1
            for booking in rows
            if (booking.start_date.year, booking.start_date.month) == (today.year, today.month)
        ),
        properties=properties,
        customers=customers,
    )
