from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from supabase import Client

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking_created"
BOOKING_UPDATED = "booking_updated"
BOOKING_STATUS_CHANGED = "booking_status_changed"
BOOKING_DELETED = "booking_deleted"
CALENDAR_SYNCED = "calendar_synced"
CALENDAR_SYNC_FAILED = "calendar_sync_failed"

_TEMPLATES: dict[str, tuple[str, str]] = {
    BOOKING_CREATED: (
        "Booking Created",
        "Booking for {customer_name} has been successfully created.",
    ),
    BOOKING_UPDATED: (
        "Booking Updated",
        "Booking for {customer_name} has been successfully updated.",
    ),
    BOOKING_STATUS_CHANGED: (
        "Booking Status Changed",
        "Booking for {customer_name} has been {action}.",
    ),
    BOOKING_DELETED: (
        "Booking Deleted",
        "Booking for {customer_name} has been permanently removed.",
    ),
    CALENDAR_SYNCED: (
        "Google Calendar Synced",
        "Booking has been added to the calendar of {property_name}.",
    ),
    CALENDAR_SYNC_FAILED: (
        "Google Calendar Sync Failed",
        "Could not sync booking with the calendar of {property_name}: {detail}",
    ),
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return "Unknown"


@dataclass
class Notification:
    kind: str
    title: str
    description: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def render_notification(kind: str, payload: dict[str, Any]) -> Notification:
    title, template = _TEMPLATES.get(kind, (kind.replace("_", " ").title(), ""))
    description = template.format_map(_Defaults(payload))
    return Notification(kind=kind, title=title, description=description, payload=dict(payload))


class NotificationSink:
    """Fire-and-forget sink for user-facing toasts.

    Keeps a bounded feed of recent notifications in memory and, when a
    Supabase client is given, also appends them to the ``notifications``
    table. Nothing here ever raises to the caller.
    """

    def __init__(self, client: Client | None = None, max_items: int = 100):
        self.client = client
        self._feed: deque[Notification] = deque(maxlen=max_items)
        self._lock = threading.Lock()

    def notify(self, kind: str, payload: dict[str, Any]) -> None:
        notification = render_notification(kind, payload)
        with self._lock:
            self._feed.append(notification)

        log = logger.warning if kind == CALENDAR_SYNC_FAILED else logger.info
        log("%s: %s", notification.title, notification.description)

        if self.client is None:
            return
        try:
            self.client.table("notifications").insert(
                {
                    "kind": notification.kind,
                    "title": notification.title,
                    "description": notification.description,
                    "payload": notification.payload,
                    "created_at": notification.created_at.isoformat(),
                }
            ).execute()
        except Exception as e:
            logger.warning(f"Failed to store notification: {e}")

    def recent(self, limit: int | None = None) -> list[Notification]:
        with self._lock:
            items = list(reversed(self._feed))
        return items[:limit] if limit is not None else items
