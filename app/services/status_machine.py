"""Booking status state machine."""

from __future__ import annotations

from dataclasses import dataclass

from app.core.exceptions import InvalidTransitionError
from app.schemas.booking import ACTIVE_STATUSES, BookingStatus

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

STATUS_CHANGE_MESSAGES = {
    BookingStatus.CONFIRMED: "confirmed",
    BookingStatus.PENDING: "marked as pending",
    BookingStatus.CANCELLED: "cancelled",
    BookingStatus.COMPLETED: "marked as completed",
}


@dataclass(frozen=True)
class TransitionEffects:
    """Structural side effects the caller must apply for a transition."""

    release_interval: bool = False
    sync_calendar: bool = False


def assert_transition(current: BookingStatus, target: BookingStatus) -> TransitionEffects:
    if target not in BOOKING_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)

    return TransitionEffects(
        release_interval=target not in ACTIVE_STATUSES,
        sync_calendar=target is BookingStatus.CONFIRMED,
    )
