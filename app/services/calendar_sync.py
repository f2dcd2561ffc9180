"""Boundary to the external (Google) calendar.

Sync is best-effort: it runs once per confirm transition, after the
booking write has been committed, is bounded by a timeout and is never
retried. Every failure mode comes back as ``SyncResult(ok=False)``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timezone
from typing import Protocol
from urllib.parse import quote

import httpx

from app.core.exceptions import SyncError
from app.schemas.booking import Booking
from app.schemas.calendar import CalendarEvent, SyncResult
from app.schemas.catalog import CustomerRef, PropertyRef

logger = logging.getLogger(__name__)


class CalendarSyncAdapter(Protocol):
    async def sync_booking(self, calendar_id: str, event: CalendarEvent) -> SyncResult:
        ...


def _midnight_utc(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def build_calendar_event(
    booking: Booking,
    property_ref: PropertyRef,
    customer_ref: CustomerRef | None,
    time_zone: str = "UTC",
) -> CalendarEvent:
    customer_name = customer_ref.name if customer_ref else "Unknown"
    attendees = [customer_ref.email] if customer_ref and customer_ref.email else []
    return CalendarEvent(
        summary=f"Booking: {property_ref.name}",
        description=(
            f"Guest: {customer_name}\n"
            f"Guests: {booking.guest_count}\n"
            f"Notes: {booking.notes or 'None'}"
        ),
        start_date_time=_midnight_utc(booking.start_date),
        end_date_time=_midnight_utc(booking.end_date),
        time_zone=time_zone,
        attendee_emails=attendees,
    )


class GoogleCalendarSyncAdapter:
    """Creates events through the Google Calendar v3 ``events.insert`` API."""

    def __init__(
        self,
        api_base: str,
        access_token: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.access_token = access_token
        self.transport = transport

    def _event_body(self, event: CalendarEvent) -> dict:
        body = {
            "summary": event.summary,
            "description": event.description,
            "start": {
                "dateTime": event.start_date_time.isoformat(),
                "timeZone": event.time_zone,
            },
            "end": {
                "dateTime": event.end_date_time.isoformat(),
                "timeZone": event.time_zone,
            },
        }
        if event.attendee_emails:
            body["attendees"] = [{"email": email} for email in event.attendee_emails]
        return body

    async def sync_booking(self, calendar_id: str, event: CalendarEvent) -> SyncResult:
        if not self.access_token:
            return SyncResult(ok=False, detail="not_configured")

        url = f"{self.api_base}/calendars/{quote(calendar_id, safe='')}/events"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(url, json=self._event_body(event), headers=headers)
        except httpx.HTTPError as exc:
            return SyncResult(ok=False, detail=f"request error ({exc})")

        if response.is_success:
            try:
                event_id = response.json().get("id")
            except ValueError:
                event_id = None
            return SyncResult(ok=True, event_id=event_id)
        return SyncResult(ok=False, detail=f"HTTP {response.status_code}")


async def run_sync(
    adapter: CalendarSyncAdapter,
    calendar_id: str,
    event: CalendarEvent,
    timeout: float,
) -> SyncResult:
    """Call the adapter once, bounded by ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(adapter.sync_booking(calendar_id, event), timeout=timeout)
    except asyncio.TimeoutError:
        return SyncResult(ok=False, detail="timeout")
    except SyncError as exc:
        return SyncResult(ok=False, detail=exc.detail)
    except Exception as exc:
        logger.warning("Calendar adapter raised for %s: %s", calendar_id, exc)
        return SyncResult(ok=False, detail=str(exc) or exc.__class__.__name__)
