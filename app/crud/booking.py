"""In-process booking store.

Bookings live in an id-keyed arena of immutable ``Booking`` snapshots.
Writers replace whole records, so a ``snapshot()`` copy taken under the
store lock is a consistent point-in-time view that readers can filter
and aggregate without holding any property lock.
"""

from __future__ import annotations

import threading
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable

from app.schemas.booking import Booking, BookingStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingStore:
    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self._bookings: dict[str, Booking] = {}
        self._lock = threading.RLock()
        self._clock = clock
        self._id_factory = id_factory

    def create(
        self,
        *,
        property_id: str,
        customer_id: str,
        start_date: date,
        end_date: date,
        status: BookingStatus,
        guest_count: int,
        total_amount: float = 0.0,
        amount_paid: float = 0.0,
        notes: str | None = None,
    ) -> Booking:
        now = self._clock()
        with self._lock:
            booking_id = self._id_factory()
            while booking_id in self._bookings:
                booking_id = self._id_factory()
            booking = Booking(
                id=booking_id,
                property_id=property_id,
                customer_id=customer_id,
                start_date=start_date,
                end_date=end_date,
                status=status,
                guest_count=guest_count,
                total_amount=total_amount,
                amount_paid=amount_paid,
                notes=notes or "",
                created_at=now,
                updated_at=now,
            )
            self._bookings[booking_id] = booking
        return booking

    def update(self, booking_id: str, changes: dict[str, Any]) -> Booking | None:
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None:
                return None
            updated = current.model_copy(update={**changes, "updated_at": self._clock()})
            self._bookings[booking_id] = updated
        return updated

    def put(self, booking: Booking) -> None:
        """Store ``booking`` as-is, timestamps included."""
        with self._lock:
            self._bookings[booking.id] = booking

    def delete(self, booking_id: str) -> Booking | None:
        with self._lock:
            return self._bookings.pop(booking_id, None)

    def get(self, booking_id: str) -> Booking | None:
        with self._lock:
            return self._bookings.get(booking_id)

    def snapshot(self) -> list[Booking]:
        with self._lock:
            return list(self._bookings.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._bookings)
