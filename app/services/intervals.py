"""Date interval predicates.

Two different containment rules are used on purpose:

* conflict detection treats a stay as half-open ``[start, end)`` so a
  checkout and a check-in can share a turnover day;
* calendar display treats it as closed ``[start, end]`` so the checkout
  day still shows an occupied marker.

Keep the two predicates separate.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator, NamedTuple


class DateInterval(NamedTuple):
    start: date
    end: date

    @property
    def is_valid(self) -> bool:
        return self.start < self.end


def overlaps(a: DateInterval, b: DateInterval) -> bool:
    """Half-open overlap. Touching intervals do not overlap."""
    return a.start < b.end and b.start < a.end


def intersects_range(
    interval: DateInterval, range_start: date | None, range_end: date | None
) -> bool:
    """Half-open intersection with a range whose bounds may be open-ended.

    A range with both bounds set and ``range_start >= range_end`` is empty
    and intersects nothing.
    """
    if range_start is not None and range_end is not None and not range_start < range_end:
        return False
    if range_end is not None and not interval.start < range_end:
        return False
    if range_start is not None and not range_start < interval.end:
        return False
    return True


def covers_day(interval: DateInterval, day: date) -> bool:
    """Closed containment used for calendar markers."""
    return interval.start <= day <= interval.end


def touches_range(interval: DateInterval, first_day: date, last_day: date) -> bool:
    """Closed intersection of a stay with the inclusive span ``[first_day, last_day]``."""
    return interval.start <= last_day and first_day <= interval.end


def iter_days(first_day: date, last_day: date) -> Iterator[date]:
    current = first_day
    while current <= last_day:
        yield current
        current += timedelta(days=1)
