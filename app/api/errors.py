from typing import NoReturn

from fastapi import HTTPException, status

from app.core.exceptions import (
    BookingCoreError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)


def raise_http_error(exc: BookingCoreError) -> NoReturn:
    """Translate a booking-core error into the matching HTTP response."""
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found") from exc
    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"reason": exc.reason, "message": str(exc)},
        ) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "reason": "conflict",
                "message": str(exc),
                "conflicting_booking_id": exc.conflicting_booking_id,
            },
        ) from exc
    if isinstance(exc, InvalidTransitionError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "reason": "invalid_transition",
                "message": str(exc),
                "from": exc.from_status,
                "to": exc.to_status,
            },
        ) from exc
    raise exc
