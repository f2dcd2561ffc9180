from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
INITIAL_STATUSES = ACTIVE_STATUSES


class Booking(BaseModel):
    """A stored reservation. Instances are immutable snapshots."""

    model_config = ConfigDict(frozen=True)

    id: str
    property_id: str
    customer_id: str
    start_date: date
    end_date: date
    status: BookingStatus
    guest_count: int
    total_amount: float = 0.0
    amount_paid: float = 0.0
    notes: str = ""
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def nights(self) -> int:
        return (self.end_date - self.start_date).days


class BookingCreate(BaseModel):
    property_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    guest_count: int
    status: BookingStatus = BookingStatus.PENDING
    notes: str | None = None
    total_amount: float | None = Field(None, ge=0)
    amount_paid: float = Field(0.0, ge=0)


class BookingUpdate(BaseModel):
    property_id: str | None = Field(None, min_length=1)
    customer_id: str | None = Field(None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    guest_count: int | None = None
    status: BookingStatus | None = None
    notes: str | None = None
    total_amount: float | None = Field(None, ge=0)
    amount_paid: float | None = Field(None, ge=0)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingResponse(BaseModel):
    id: str
    property_id: str
    property_name: str | None = None
    customer_id: str
    customer_name: str | None = None
    start_date: date
    end_date: date
    nights: int
    status: BookingStatus
    guest_count: int
    total_amount: float
    amount_paid: float
    notes: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_booking(
        cls,
        booking: Booking,
        property_name: str | None = None,
        customer_name: str | None = None,
    ) -> BookingResponse:
        return cls(
            **booking.model_dump(),
            nights=booking.nights,
            property_name=property_name,
            customer_name=customer_name,
        )


class BookingMutationResponse(BaseModel):
    booking: BookingResponse
    warnings: list[str] = Field(default_factory=list)


class BookingListResponse(BaseModel):
    items: list[BookingResponse]


class PriceQuoteResponse(BaseModel):
    property_id: str
    start_date: date
    end_date: date
    nights: int
    nightly_rate: float
    accommodation: float
    cleaning_fee: float
    service_fee: float
    total: float
