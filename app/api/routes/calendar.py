from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.api.errors import raise_http_error
from app.api.routes.bookings import build_filter
from app.core.exceptions import BookingCoreError
from app.schemas.booking import BookingResponse
from app.schemas.calendar import (
    BookingStatsResponse,
    CustomerStat,
    DayDetailResponse,
    MonthViewResponse,
    PropertyStat,
)
from app.services.booking_service import BookingService, CatalogNames
from app.services.filters import BookingFilter

router = APIRouter(prefix="/v1.0/calendar", tags=["calendar"])


def _response(booking, names: CatalogNames) -> BookingResponse:
    return BookingResponse.from_booking(
        booking,
        property_name=names.property_names.get(booking.property_id),
        customer_name=names.customer_names.get(booking.customer_id),
    )


@router.get("/month", response_model=MonthViewResponse)
async def get_month_view(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="Month as YYYY-MM"),
    property_id: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    service: BookingService = Depends(deps.get_booking_service),
):
    """Bookings per calendar day; stays are marked on check-in through check-out."""
    try:
        view = await service.get_month_view(month, property_id=property_id, status=status_filter)
    except BookingCoreError as exc:
        raise_http_error(exc)

    names = await service.resolve_names(view.events)
    return MonthViewResponse(
        month=view.month,
        first_day=view.first_day,
        last_day=view.last_day,
        day_buckets={
            day: [_response(booking, names) for booking in bookings]
            for day, bookings in view.day_buckets.items()
        },
        events=[_response(booking, names) for booking in view.events],
    )


@router.get("/day", response_model=DayDetailResponse)
async def get_day_detail(
    day: date = Query(..., alias="date"),
    property_id: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    service: BookingService = Depends(deps.get_booking_service),
):
    try:
        rows = await service.get_day_detail(day, property_id=property_id, status=status_filter)
    except BookingCoreError as exc:
        raise_http_error(exc)
    names = await service.resolve_names(rows)
    return DayDetailResponse(day=day, items=[_response(row, names) for row in rows])


@router.get("/stats", response_model=BookingStatsResponse)
async def get_booking_stats(
    booking_filter: BookingFilter = Depends(build_filter),
    service: BookingService = Depends(deps.get_booking_service),
):
    """Dashboard counters plus per-property and per-customer totals."""
    stats = await service.get_stats(booking_filter)
    return BookingStatsResponse(
        total=stats.total,
        confirmed=stats.confirmed,
        starting_this_month=stats.starting_this_month,
        properties=[
            PropertyStat(
                property_id=stat.property_id,
                property_name=stat.property_name,
                booking_count=stat.booking_count,
            )
            for stat in stats.properties
        ],
        customers=[
            CustomerStat(
                customer_id=stat.customer_id,
                customer_name=stat.customer_name,
                booking_count=stat.booking_count,
                total_spent=stat.total_spent,
            )
            for stat in stats.customers
        ],
    )
