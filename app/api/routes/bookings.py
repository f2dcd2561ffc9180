from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api import deps
from app.api.errors import raise_http_error
from app.core.exceptions import BookingCoreError
from app.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingMutationResponse,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdate,
    PriceQuoteResponse,
)
from app.services.booking_service import BookingResult, BookingService
from app.services.filters import BookingFilter, normalize_status

router = APIRouter(prefix="/v1.0/bookings", tags=["bookings"])


def build_filter(
    property_id: str | None = None,
    customer_id: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    search: str | None = None,
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    starting_from: date | None = None,
    upcoming: bool = Query(False, description="Only non-cancelled stays starting today or later"),
) -> BookingFilter:
    """Shared query parameters for list and stats endpoints."""
    if date_from and date_to and date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="'from' must be less than or equal to 'to'",
        )
    try:
        booking_status = normalize_status(status_filter)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid status filter. Allowed values: all, cancelled, completed, confirmed, pending",
        )
    if upcoming and starting_from is None:
        starting_from = date.today()
    return BookingFilter(
        property_id=property_id,
        customer_id=customer_id,
        status=booking_status,
        search=search,
        date_from=date_from,
        date_to=date_to,
        starting_from=starting_from,
        exclude_cancelled=upcoming,
    )


async def _to_mutation_response(
    service: BookingService, result: BookingResult
) -> BookingMutationResponse:
    names = await service.resolve_names([result.booking])
    booking = result.booking
    return BookingMutationResponse(
        booking=BookingResponse.from_booking(
            booking,
            property_name=names.property_names.get(booking.property_id),
            customer_name=names.customer_names.get(booking.customer_id),
        ),
        warnings=result.warnings,
    )


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    booking_filter: BookingFilter = Depends(build_filter),
    service: BookingService = Depends(deps.get_booking_service),
):
    """List bookings matching every given filter, ordered by start date."""
    rows = await service.list_bookings(booking_filter)
    names = await service.resolve_names(rows)
    return BookingListResponse(
        items=[
            BookingResponse.from_booking(
                row,
                property_name=names.property_names.get(row.property_id),
                customer_name=names.customer_names.get(row.customer_id),
            )
            for row in rows
        ]
    )


@router.post("", response_model=BookingMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_new_booking(
    payload: BookingCreate,
    service: BookingService = Depends(deps.get_booking_service),
):
    """Create a booking after validating it against the property's calendar."""
    try:
        result = await service.create_booking(
            property_id=payload.property_id,
            customer_id=payload.customer_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            guest_count=payload.guest_count,
            status=payload.status,
            notes=payload.notes,
            total_amount=payload.total_amount,
            amount_paid=payload.amount_paid,
        )
    except BookingCoreError as exc:
        raise_http_error(exc)
    return await _to_mutation_response(service, result)


@router.get("/quote", response_model=PriceQuoteResponse)
async def get_price_quote(
    property_id: str,
    start_date: date,
    end_date: date,
    service: BookingService = Depends(deps.get_booking_service),
):
    try:
        quote = await service.quote(property_id, start_date, end_date)
    except BookingCoreError as exc:
        raise_http_error(exc)
    return PriceQuoteResponse(
        property_id=quote.property_id,
        start_date=start_date,
        end_date=end_date,
        nights=quote.nights,
        nightly_rate=quote.nightly_rate,
        accommodation=quote.accommodation,
        cleaning_fee=quote.cleaning_fee,
        service_fee=quote.service_fee,
        total=quote.total,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_single_booking(
    booking_id: str,
    service: BookingService = Depends(deps.get_booking_service),
):
    try:
        booking = service.get_booking(booking_id)
    except BookingCoreError as exc:
        raise_http_error(exc)
    names = await service.resolve_names([booking])
    return BookingResponse.from_booking(
        booking,
        property_name=names.property_names.get(booking.property_id),
        customer_name=names.customer_names.get(booking.customer_id),
    )


@router.patch("/{booking_id}", response_model=BookingMutationResponse)
async def update_existing_booking(
    booking_id: str,
    payload: BookingUpdate,
    service: BookingService = Depends(deps.get_booking_service),
):
    """Update a booking (property, dates, guests, amounts, notes or status)."""
    try:
        result = await service.update_booking(booking_id, payload)
    except BookingCoreError as exc:
        raise_http_error(exc)
    return await _to_mutation_response(service, result)


@router.post("/{booking_id}/status", response_model=BookingMutationResponse)
async def change_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    service: BookingService = Depends(deps.get_booking_service),
):
    try:
        result = await service.transition_status(booking_id, payload.status)
    except BookingCoreError as exc:
        raise_http_error(exc)
    return await _to_mutation_response(service, result)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_booking(
    booking_id: str,
    service: BookingService = Depends(deps.get_booking_service),
):
    try:
        await service.delete_booking(booking_id)
    except BookingCoreError as exc:
        raise_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
