from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.booking import BookingResponse


class CalendarEvent(BaseModel):
    """Event payload handed to the external calendar collaborator."""

    summary: str
    description: str
    start_date_time: datetime
    end_date_time: datetime
    time_zone: str = "UTC"
    attendee_emails: list[str] = Field(default_factory=list)


class SyncResult(BaseModel):
    ok: bool
    detail: str | None = None
    event_id: str | None = None


class MonthViewResponse(BaseModel):
    month: str
    first_day: date
    last_day: date
    day_buckets: dict[date, list[BookingResponse]]
    events: list[BookingResponse]


class DayDetailResponse(BaseModel):
    day: date
    items: list[BookingResponse]


class PropertyStat(BaseModel):
    property_id: str
    property_name: str | None = None
    booking_count: int


class CustomerStat(BaseModel):
    customer_id: str
    customer_name: str | None = None
    booking_count: int
    total_spent: float


class BookingStatsResponse(BaseModel):
    total: int = 0
    confirmed: int = 0
    starting_this_month: int = 0
    properties: list[PropertyStat] = Field(default_factory=list)
    customers: list[CustomerStat] = Field(default_factory=list)


class NotificationResponse(BaseModel):
    kind: str
    title: str
    description: str
    payload: dict = Field(default_factory=dict)
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
