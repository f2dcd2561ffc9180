from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import deps
import app.api.routes.bookings as booking_routes
import app.api.routes.calendar as calendar_routes
import app.api.routes.notifications as notification_routes
from app.crud.booking import BookingStore
from app.services.booking_service import BookingService
from app.services.notifications import NotificationSink
from app.tests.fakes import FakeSupabaseClient, catalog_storage, sequential_ids

booking_test_app = FastAPI()
booking_test_app.include_router(booking_routes.router)
booking_test_app.include_router(calendar_routes.router)
booking_test_app.include_router(notification_routes.router)


@pytest.fixture
def service():
    sink = NotificationSink()
    booking_service = BookingService(
        client=FakeSupabaseClient(catalog_storage()),
        store=BookingStore(
            clock=lambda: datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc),
            id_factory=sequential_ids(),
        ),
        notifier=sink,
    )
    booking_test_app.dependency_overrides[deps.get_booking_service] = lambda: booking_service
    booking_test_app.dependency_overrides[deps.get_notification_sink] = lambda: sink
    yield booking_service
    booking_test_app.dependency_overrides.clear()


@pytest.fixture
def client(service):
    return TestClient(booking_test_app)


def _payload(**overrides) -> dict:
    payload = {
        "property_id": "prop-1",
        "customer_id": "cust-1",
        "start_date": "2026-06-28",
        "end_date": "2026-07-02",
        "guest_count": 2,
        "status": "confirmed",
    }
    payload.update(overrides)
    return payload


def test_create_booking_returns_enriched_booking(client):
    response = client.post("/v1.0/bookings", json=_payload(notes="Anniversary"))

    assert response.status_code == 201
    body = response.json()
    assert body["warnings"] == []
    booking = body["booking"]
    assert booking["id"] == "booking-001"
    assert booking["property_name"] == "Sunset Villa"
    assert booking["customer_name"] == "John Smith"
    assert booking["nights"] == 4
    assert booking["status"] == "confirmed"
    assert booking["notes"] == "Anniversary"
    assert booking["total_amount"] == 1117.5


def test_create_overlapping_booking_returns_conflict(client):
    client.post("/v1.0/bookings", json=_payload())

    response = client.post(
        "/v1.0/bookings", json=_payload(start_date="2026-07-01", end_date="2026-07-05")
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["reason"] == "conflict"
    assert detail["conflicting_booking_id"] == "booking-001"


def test_same_day_checkin_is_accepted(client):
    client.post("/v1.0/bookings", json=_payload())
    response = client.post(
        "/v1.0/bookings", json=_payload(start_date="2026-07-02", end_date="2026-07-04")
    )
    assert response.status_code == 201


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"end_date": "2026-06-28"}, "invalid_range"),
        ({"guest_count": 0}, "invalid_guest_count"),
        ({"property_id": "prop-404"}, "unknown_property"),
        ({"status": "completed"}, "invalid_initial_status"),
    ],
)
def test_create_validation_errors(client, overrides, reason):
    response = client.post("/v1.0/bookings", json=_payload(**overrides))
    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == reason


def test_get_unknown_booking_returns_404(client):
    response = client.get("/v1.0/bookings/booking-404")
    assert response.status_code == 404
    assert response.json()["detail"] == "Booking not found"


def test_status_transitions(client):
    created = client.post("/v1.0/bookings", json=_payload(status="pending")).json()["booking"]

    confirmed = client.post(f"/v1.0/bookings/{created['id']}/status", json={"status": "confirmed"})
    assert confirmed.status_code == 200
    assert confirmed.json()["booking"]["status"] == "confirmed"

    cancelled = client.post(f"/v1.0/bookings/{created['id']}/status", json={"status": "cancelled"})
    assert cancelled.status_code == 200

    rejected = client.post(f"/v1.0/bookings/{created['id']}/status", json={"status": "confirmed"})
    assert rejected.status_code == 409
    assert rejected.json()["detail"] == {
        "reason": "invalid_transition",
        "message": "Invalid booking transition: cancelled -> confirmed",
        "from": "cancelled",
        "to": "confirmed",
    }

    retry = client.post("/v1.0/bookings", json=_payload())
    assert retry.status_code == 201


def test_patch_updates_dates_and_rejects_conflicts(client):
    first = client.post("/v1.0/bookings", json=_payload()).json()["booking"]
    second = client.post(
        "/v1.0/bookings", json=_payload(start_date="2026-07-10", end_date="2026-07-12")
    ).json()["booking"]

    moved = client.patch(f"/v1.0/bookings/{first['id']}", json={"end_date": "2026-07-05"})
    assert moved.status_code == 200
    assert moved.json()["booking"]["nights"] == 7

    clash = client.patch(f"/v1.0/bookings/{second['id']}", json={"start_date": "2026-07-04"})
    assert clash.status_code == 409
    assert clash.json()["detail"]["conflicting_booking_id"] == first["id"]


def test_delete_booking(client):
    created = client.post("/v1.0/bookings", json=_payload()).json()["booking"]

    response = client.delete(f"/v1.0/bookings/{created['id']}")
    assert response.status_code == 204
    assert client.get(f"/v1.0/bookings/{created['id']}").status_code == 404
    assert client.delete(f"/v1.0/bookings/{created['id']}").status_code == 404


def test_list_bookings_applies_filters(client):
    client.post("/v1.0/bookings", json=_payload(start_date="2026-06-10", end_date="2026-06-12"))
    client.post(
        "/v1.0/bookings",
        json=_payload(start_date="2026-06-01", end_date="2026-06-04", customer_id="cust-2"),
    )
    client.post("/v1.0/bookings", json=_payload(start_date="2026-06-05", end_date="2026-06-08"))
    client.post(
        "/v1.0/bookings",
        json=_payload(start_date="2026-06-01", end_date="2026-06-03", property_id="prop-2"),
    )

    response = client.get(
        "/v1.0/bookings",
        params={"property_id": "prop-1", "status": "confirmed", "search": "smith"},
    )
    assert response.status_code == 200
    assert [item["start_date"] for item in response.json()["items"]] == [
        "2026-06-05",
        "2026-06-10",
    ]

    windowed = client.get("/v1.0/bookings", params={"from": "2026-06-04", "to": "2026-06-05"})
    assert [item["id"] for item in windowed.json()["items"]] == []

    everything = client.get("/v1.0/bookings", params={"status": "all"})
    assert len(everything.json()["items"]) == 4


def test_list_bookings_rejects_bad_filters(client):
    assert client.get("/v1.0/bookings", params={"status": "archived"}).status_code == 422
    inverted = client.get("/v1.0/bookings", params={"from": "2026-06-10", "to": "2026-06-01"})
    assert inverted.status_code == 422
    assert inverted.json()["detail"] == "'from' must be less than or equal to 'to'"


def test_quote_endpoint(client):
    response = client.get(
        "/v1.0/bookings/quote",
        params={"property_id": "prop-2", "start_date": "2026-06-01", "end_date": "2026-06-03"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["nights"] == 2
    assert body["accommodation"] == 300.0
    assert body["cleaning_fee"] == 22.5
    assert body["service_fee"] == 24.0
    assert body["total"] == 346.5


def test_month_view_endpoint_marks_checkout_day(client):
    client.post("/v1.0/bookings", json=_payload())

    june = client.get("/v1.0/calendar/month", params={"month": "2026-06"}).json()
    assert june["first_day"] == "2026-06-01"
    assert june["last_day"] == "2026-06-30"
    assert june["day_buckets"]["2026-06-27"] == []
    assert [b["id"] for b in june["day_buckets"]["2026-06-30"]] == ["booking-001"]

    july = client.get(
        "/v1.0/calendar/month", params={"month": "2026-07", "property_id": "prop-1"}
    ).json()
    assert [b["id"] for b in july["day_buckets"]["2026-07-02"]] == ["booking-001"]
    assert july["day_buckets"]["2026-07-03"] == []
    assert july["events"][0]["customer_name"] == "John Smith"


def test_calendar_reads_reject_bad_month_and_status(client):
    bad_month = client.get("/v1.0/calendar/month", params={"month": "2026-13"})
    assert bad_month.status_code == 422
    assert bad_month.json()["detail"]["reason"] == "invalid_month"

    bad_status = client.get("/v1.0/calendar/day", params={"date": "2026-06-01", "status": "archived"})
    assert bad_status.status_code == 422
    assert bad_status.json()["detail"]["reason"] == "invalid_status"


def test_list_bookings_with_equal_bounds_is_empty(client):
    client.post("/v1.0/bookings", json=_payload())
    response = client.get("/v1.0/bookings", params={"from": "2026-06-30", "to": "2026-06-30"})
    assert response.status_code == 200
    assert response.json()["items"] == []


def test_list_upcoming_bookings(client):
    client.post("/v1.0/bookings", json=_payload(start_date="2000-01-10", end_date="2000-01-12"))
    future = client.post(
        "/v1.0/bookings", json=_payload(start_date="2099-03-01", end_date="2099-03-04")
    ).json()["booking"]
    cancelled = client.post(
        "/v1.0/bookings", json=_payload(start_date="2099-04-01", end_date="2099-04-04")
    ).json()["booking"]
    client.post(f"/v1.0/bookings/{cancelled['id']}/status", json={"status": "cancelled"})

    upcoming = client.get("/v1.0/bookings", params={"upcoming": "true"}).json()["items"]
    assert [item["id"] for item in upcoming] == [future["id"]]

    starting = client.get("/v1.0/bookings", params={"starting_from": "2099-03-15"}).json()["items"]
    assert [item["id"] for item in starting] == [cancelled["id"]]


def test_month_view_rejects_invalid_month(client):
    assert client.get("/v1.0/calendar/month", params={"month": "2026-13"}).status_code == 422
    assert client.get("/v1.0/calendar/month", params={"month": "June"}).status_code == 422


def test_day_detail_and_stats(client):
    client.post("/v1.0/bookings", json=_payload())
    client.post(
        "/v1.0/bookings",
        json=_payload(
            start_date="2026-07-02",
            end_date="2026-07-04",
            customer_id="cust-2",
            status="pending",
        ),
    )

    day = client.get("/v1.0/calendar/day", params={"date": "2026-07-02"}).json()
    assert day["day"] == "2026-07-02"
    assert [item["customer_name"] for item in day["items"]] == ["John Smith", "Emma Johnson"]

    confirmed_only = client.get(
        "/v1.0/calendar/day", params={"date": "2026-07-02", "status": "confirmed"}
    ).json()
    assert len(confirmed_only["items"]) == 1

    stats = client.get("/v1.0/calendar/stats").json()
    assert stats["total"] == 2
    assert stats["confirmed"] == 1
    assert stats["properties"] == [
        {"property_id": "prop-1", "property_name": "Sunset Villa", "booking_count": 2}
    ]


def test_notifications_feed(client):
    created = client.post("/v1.0/bookings", json=_payload()).json()["booking"]
    client.post(f"/v1.0/bookings/{created['id']}/status", json={"status": "completed"})

    response = client.get("/v1.0/notifications", params={"limit": 1})
    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["kind"] == "booking_status_changed"
    assert items[0]["description"] == "Booking for John Smith has been marked as completed."
