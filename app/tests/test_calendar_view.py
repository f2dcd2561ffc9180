from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from app.schemas.booking import Booking, BookingStatus
from app.services.calendar_view import (
    bookings_on_day,
    build_month_view,
    build_stats,
    parse_month,
    sort_bookings,
)
from app.services.filters import BookingFilter, apply_filter, normalize_status

CREATED = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


def _booking(
    booking_id: str,
    start: date,
    end: date,
    *,
    property_id: str = "prop-1",
    customer_id: str = "cust-1",
    status: BookingStatus = BookingStatus.CONFIRMED,
    total_amount: float = 100.0,
) -> Booking:
    return Booking(
        id=booking_id,
        property_id=property_id,
        customer_id=customer_id,
        start_date=start,
        end_date=end,
        status=status,
        guest_count=2,
        total_amount=total_amount,
        created_at=CREATED,
        updated_at=CREATED,
    )


def test_parse_month_bounds():
    assert parse_month("2026-02") == (date(2026, 2, 1), date(2026, 2, 28))
    assert parse_month("2028-02") == (date(2028, 2, 1), date(2028, 2, 29))
    for bad in ("2026-13", "2026", "June", "2026-06-01"):
        with pytest.raises(ValueError):
            parse_month(bad)


def test_month_grid_marks_checkout_day_across_month_boundary():
    stay = _booking("booking-1", date(2026, 6, 28), date(2026, 7, 2))

    june = build_month_view([stay], "2026-06")
    assert len(june.day_buckets) == 30
    assert june.day_buckets[date(2026, 6, 27)] == []
    for day in (28, 29, 30):
        assert june.day_buckets[date(2026, 6, day)] == [stay]

    july = build_month_view([stay], "2026-07")
    assert july.day_buckets[date(2026, 7, 1)] == [stay]
    assert july.day_buckets[date(2026, 7, 2)] == [stay]
    assert july.day_buckets[date(2026, 7, 3)] == []
    assert july.events == [stay]


def test_month_grid_covers_stays_spanning_the_whole_month():
    long_stay = _booking("booking-1", date(2026, 5, 20), date(2026, 7, 10))
    view = build_month_view([long_stay], "2026-06")
    assert all(bucket == [long_stay] for bucket in view.day_buckets.values())


def test_month_grid_buckets_are_sorted_by_start_then_id():
    a = _booking("booking-b", date(2026, 6, 3), date(2026, 6, 6), property_id="prop-1")
    b = _booking("booking-a", date(2026, 6, 3), date(2026, 6, 5), property_id="prop-2")
    c = _booking("booking-c", date(2026, 6, 1), date(2026, 6, 4), property_id="prop-3")

    view = build_month_view([a, b, c], "2026-06")
    assert [booking.id for booking in view.day_buckets[date(2026, 6, 4)]] == [
        "booking-c",
        "booking-a",
        "booking-b",
    ]


def test_day_detail_uses_closed_interval():
    stay = _booking("booking-1", date(2026, 6, 10), date(2026, 6, 12))
    assert bookings_on_day([stay], date(2026, 6, 10)) == [stay]
    assert bookings_on_day([stay], date(2026, 6, 12)) == [stay]
    assert bookings_on_day([stay], date(2026, 6, 13)) == []


def test_list_projection_orders_by_start_date_then_id():
    rows = [
        _booking("booking-3", date(2026, 6, 5), date(2026, 6, 6)),
        _booking("booking-2", date(2026, 6, 1), date(2026, 6, 2), property_id="prop-2"),
        _booking("booking-1", date(2026, 6, 1), date(2026, 6, 3)),
    ]
    assert [row.id for row in sort_bookings(rows)] == ["booking-1", "booking-2", "booking-3"]


def test_filter_combines_predicates_and_keeps_order():
    rows = [
        _booking("booking-1", date(2026, 6, 10), date(2026, 6, 12)),
        _booking("booking-2", date(2026, 6, 20), date(2026, 6, 22), customer_id="cust-2"),
        _booking("booking-3", date(2026, 6, 5), date(2026, 6, 7), status=BookingStatus.PENDING),
        _booking("booking-4", date(2026, 6, 1), date(2026, 6, 5), property_id="prop-2"),
        _booking("booking-5", date(2026, 6, 1), date(2026, 6, 4)),
    ]
    customer_names = {"cust-1": "John Smith", "cust-2": "Emma Johnson"}
    property_names = {"prop-1": "Sunset Villa", "prop-2": "Mountain Retreat"}

    result = apply_filter(
        rows,
        BookingFilter(property_id="prop-1", status=BookingStatus.CONFIRMED, search="SMITH"),
        property_names,
        customer_names,
    )
    assert [row.id for row in result] == ["booking-1", "booking-5"]


def test_search_matches_property_name_or_booking_id():
    rows = [
        _booking("booking-1", date(2026, 6, 1), date(2026, 6, 2)),
        _booking("booking-2", date(2026, 6, 1), date(2026, 6, 2), property_id="prop-2"),
    ]
    property_names = {"prop-1": "Sunset Villa", "prop-2": "Mountain Retreat"}

    by_property = apply_filter(rows, BookingFilter(search="mountain"), property_names, {})
    assert [row.id for row in by_property] == ["booking-2"]

    by_id = apply_filter(rows, BookingFilter(search="ing-1"), property_names, {})
    assert [row.id for row in by_id] == ["booking-1"]

    blank = apply_filter(rows, BookingFilter(search="   "), property_names, {})
    assert len(blank) == 2


def test_date_window_uses_half_open_intersection():
    rows = [
        _booking("booking-1", date(2026, 6, 1), date(2026, 6, 5)),
        _booking("booking-2", date(2026, 6, 5), date(2026, 6, 9), property_id="prop-2"),
    ]
    result = apply_filter(
        rows, BookingFilter(date_from=date(2026, 6, 5), date_to=date(2026, 6, 6))
    )
    assert [row.id for row in result] == ["booking-2"]


def test_normalize_status_handles_all_and_blank():
    assert normalize_status(None) is None
    assert normalize_status("all") is None
    assert normalize_status(" ALL ") is None
    assert normalize_status("") is None
    assert normalize_status("Confirmed") is BookingStatus.CONFIRMED
    with pytest.raises(ValueError):
        normalize_status("archived")


def test_build_stats_counts_and_ranks():
    rows = [
        _booking("booking-1", date(2026, 6, 1), date(2026, 6, 3), total_amount=300.0),
        _booking("booking-2", date(2026, 6, 10), date(2026, 6, 12), total_amount=200.5),
        _booking(
            "booking-3",
            date(2026, 7, 1),
            date(2026, 7, 4),
            property_id="prop-2",
            customer_id="cust-2",
            status=BookingStatus.PENDING,
            total_amount=99.0,
        ),
    ]
    stats = build_stats(
        rows,
        today=date(2026, 6, 15),
        property_names={"prop-1": "Sunset Villa", "prop-2": "Mountain Retreat"},
        customer_names={"cust-1": "John Smith", "cust-2": "Emma Johnson"},
    )

    assert stats.total == 3
    assert stats.confirmed == 2
    assert stats.starting_this_month == 2
    assert [(s.property_id, s.booking_count) for s in stats.properties] == [
        ("prop-1", 2),
        ("prop-2", 1),
    ]
    assert stats.customers[0].customer_name == "John Smith"
    assert stats.customers[0].total_spent == 500.5
