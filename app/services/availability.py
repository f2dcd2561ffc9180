"""Per-property index of active booking intervals.

Each property keeps its active (pending/confirmed) stays sorted by start
date. Because the stays of one property never overlap, their end dates
are sorted too, which lets inserts look only at the immediate neighbours
and lets range queries stop at the first stay that starts past the range.

The index also owns the per-property locks that writers hold while they
validate, write the store and update the index.
"""

from __future__ import annotations

import threading
from bisect import bisect_right
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Iterator

from app.core.exceptions import ConflictError
from app.services.intervals import DateInterval, overlaps


@dataclass(frozen=True)
class _Entry:
    booking_id: str
    interval: DateInterval


class _PropertyIntervals:
    __slots__ = ("starts", "entries", "by_booking")

    def __init__(self) -> None:
        self.starts: list[date] = []
        self.entries: list[_Entry] = []
        self.by_booking: dict[str, _Entry] = {}

    def first_candidate(self, range_start: date) -> int:
        pos = bisect_right(self.starts, range_start)
        if pos > 0 and self.entries[pos - 1].interval.end > range_start:
            return pos - 1
        return pos


class AvailabilityIndex:
    def __init__(self) -> None:
        self._properties: dict[str, _PropertyIntervals] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # -- locking --

    def lock_for(self, property_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(property_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[property_id] = lock
            return lock

    @contextmanager
    def locked(self, *property_ids: str) -> Iterator[None]:
        """Hold the exclusion scope of every given property.

        Locks are taken in sorted id order so two writers moving bookings
        between the same pair of properties cannot deadlock.
        """
        with ExitStack() as stack:
            for property_id in sorted(set(property_ids)):
                stack.enter_context(self.lock_for(property_id))
            yield

    # -- mutation --

    def insert(self, property_id: str, booking_id: str, interval: DateInterval) -> None:
        if not interval.is_valid:
            raise ValueError(f"Empty or inverted interval for booking {booking_id}")

        intervals = self._properties.setdefault(property_id, _PropertyIntervals())
        if booking_id in intervals.by_booking:
            raise ValueError(f"Booking {booking_id} is already indexed for {property_id}")

        pos = bisect_right(intervals.starts, interval.start)
        if pos > 0:
            previous = intervals.entries[pos - 1]
            if overlaps(previous.interval, interval):
                raise ConflictError(previous.booking_id)
        if pos < len(intervals.entries):
            following = intervals.entries[pos]
            if overlaps(following.interval, interval):
                raise ConflictError(following.booking_id)

        entry = _Entry(booking_id, interval)
        intervals.starts.insert(pos, interval.start)
        intervals.entries.insert(pos, entry)
        intervals.by_booking[booking_id] = entry

    def remove(self, property_id: str, booking_id: str) -> None:
        intervals = self._properties.get(property_id)
        if intervals is None:
            return
        entry = intervals.by_booking.pop(booking_id, None)
        if entry is None:
            return

        pos = bisect_right(intervals.starts, entry.interval.start) - 1
        while pos >= 0 and intervals.entries[pos].booking_id != booking_id:
            pos -= 1
        del intervals.starts[pos]
        del intervals.entries[pos]
        if not intervals.entries:
            del self._properties[property_id]

    # -- queries --

    def query(self, property_id: str, range_start: date, range_end: date) -> list[str]:
        """Ids of active bookings intersecting ``[range_start, range_end)``."""
        intervals = self._properties.get(property_id)
        if intervals is None or not range_start < range_end:
            return []

        result = []
        for pos in range(intervals.first_candidate(range_start), len(intervals.entries)):
            entry = intervals.entries[pos]
            if not entry.interval.start < range_end:
                break
            result.append(entry.booking_id)
        return result

    def find_conflict(
        self,
        property_id: str,
        interval: DateInterval,
        exclude_booking_id: str | None = None,
    ) -> str | None:
        for booking_id in self.query(property_id, interval.start, interval.end):
            if booking_id != exclude_booking_id:
                return booking_id
        return None

    def contains(self, property_id: str, booking_id: str) -> bool:
        intervals = self._properties.get(property_id)
        return intervals is not None and booking_id in intervals.by_booking

    def intervals_for(self, property_id: str) -> list[tuple[str, DateInterval]]:
        intervals = self._properties.get(property_id)
        if intervals is None:
            return []
        return [(entry.booking_id, entry.interval) for entry in intervals.entries]
