"""Booking service: the only writer of the store and the availability index.

Every mutation follows the same shape:

1. catalog lookups (may await) happen first;
2. the property lock(s) are taken and validate -> store write -> index
   update runs without suspending;
3. notifications and the best-effort calendar sync run after release.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from supabase import Client

from app.core.exceptions import NotFoundError, ValidationError
from app.crud.booking import BookingStore
from app.crud.catalog import (
    get_customer,
    get_customers_by_ids,
    get_properties_by_ids,
    get_property,
)
from app.schemas.booking import (
    ACTIVE_STATUSES,
    INITIAL_STATUSES,
    Booking,
    BookingStatus,
    BookingUpdate,
)
from app.schemas.catalog import CustomerRef, PropertyRef
from app.services import notifications
from app.services.availability import AvailabilityIndex
from app.services.calendar_sync import CalendarSyncAdapter, build_calendar_event, run_sync
from app.services.calendar_view import (
    BookingStats,
    MonthView,
    bookings_on_day,
    build_month_view,
    build_stats,
    parse_month,
    sort_bookings,
)
from app.services.filters import BookingFilter, apply_filter, normalize_status
from app.services.intervals import DateInterval
from app.services.notifications import NotificationSink
from app.services.pricing import CLEANING_FEE_RATE, SERVICE_FEE_RATE, PriceQuote, quote_stay
from app.services.status_machine import STATUS_CHANGE_MESSAGES, assert_transition
from app.services.validator import ConflictValidator, validate_guest_count, validate_range

logger = logging.getLogger(__name__)


def _coerce_status(status: BookingStatus | str) -> BookingStatus:
    try:
        return BookingStatus(status)
    except ValueError:
        raise ValidationError("invalid_status", f"Unknown booking status '{status}'.") from None


def _status_filter(status: BookingStatus | str | None) -> BookingStatus | None:
    try:
        return normalize_status(status)
    except ValueError:
        raise ValidationError("invalid_status", f"Unknown booking status '{status}'.") from None


@dataclass
class BookingResult:
    booking: Booking
    warnings: list[str] = field(default_factory=list)


@dataclass
class CatalogNames:
    properties: dict[str, PropertyRef] = field(default_factory=dict)
    customers: dict[str, CustomerRef] = field(default_factory=dict)

    @property
    def property_names(self) -> dict[str, str]:
        return {pid: prop.name for pid, prop in self.properties.items()}

    @property
    def customer_names(self) -> dict[str, str]:
        return {cid: customer.name for cid, customer in self.customers.items()}


class BookingService:
    def __init__(
        self,
        client: Client,
        store: BookingStore | None = None,
        index: AvailabilityIndex | None = None,
        sync_adapter: CalendarSyncAdapter | None = None,
        notifier: NotificationSink | None = None,
        sync_timeout: float = 10.0,
        time_zone: str = "UTC",
        cleaning_fee_rate: float = CLEANING_FEE_RATE,
        service_fee_rate: float = SERVICE_FEE_RATE,
    ):
        self.client = client
        self.store = store if store is not None else BookingStore()
        self.index = index if index is not None else AvailabilityIndex()
        self.validator = ConflictValidator(self.index)
        self.sync_adapter = sync_adapter
        self.notifier = notifier if notifier is not None else NotificationSink()
        self.sync_timeout = sync_timeout
        self.time_zone = time_zone
        self.cleaning_fee_rate = cleaning_fee_rate
        self.service_fee_rate = service_fee_rate

    # -- catalog helpers --

    async def _require_property(self, property_id: str) -> PropertyRef:
        property_ref = await get_property(self.client, property_id)
        if property_ref is None:
            raise ValidationError("unknown_property", f"Property {property_id} does not exist.")
        return property_ref

    async def _require_customer(self, customer_id: str) -> CustomerRef:
        customer_ref = await get_customer(self.client, customer_id)
        if customer_ref is None:
            raise ValidationError("unknown_customer", f"Customer {customer_id} does not exist.")
        return customer_ref

    async def resolve_names(self, bookings: list[Booking]) -> CatalogNames:
        """Bulk-load the properties and customers referenced by ``bookings``."""
        if not bookings:
            return CatalogNames()
        properties = await get_properties_by_ids(
            self.client, [booking.property_id for booking in bookings]
        )
        customers = await get_customers_by_ids(
            self.client, [booking.customer_id for booking in bookings]
        )
        return CatalogNames(properties=properties, customers=customers)

    def _get_or_raise(self, booking_id: str) -> Booking:
        booking = self.store.get(booking_id)
        if booking is None:
            raise NotFoundError(booking_id)
        return booking

    # -- side effects --

    def _notify(self, kind: str, booking: Booking, **extra: Any) -> None:
        payload = {"booking_id": booking.id, "property_id": booking.property_id}
        payload.update({key: value for key, value in extra.items() if value is not None})
        self.notifier.notify(kind, payload)

    async def _sync_confirmed(
        self,
        booking: Booking,
        property_ref: PropertyRef,
        customer_ref: CustomerRef | None,
    ) -> list[str]:
        """Push a confirmed booking to the property's external calendar.

        Failures are downgraded to a warning and a notification; the
        booking itself is never touched.
        """
        calendar_id = property_ref.google_calendar_id
        if not calendar_id:
            return []
        if self.sync_adapter is None:
            logger.debug("No calendar adapter configured; skipping sync of %s", booking.id)
            return []

        event = build_calendar_event(booking, property_ref, customer_ref, self.time_zone)
        result = await run_sync(self.sync_adapter, calendar_id, event, self.sync_timeout)
        if result.ok:
            self._notify(
                notifications.CALENDAR_SYNCED,
                booking,
                property_name=property_ref.name,
                calendar_id=calendar_id,
                event_id=result.event_id,
            )
            return []

        detail = result.detail or "unknown error"
        logger.warning("Calendar sync failed for booking %s: %s", booking.id, detail)
        self._notify(
            notifications.CALENDAR_SYNC_FAILED,
            booking,
            property_name=property_ref.name,
            calendar_id=calendar_id,
            detail=detail,
        )
        return [f"Calendar sync failed: {detail}"]

    # -- mutations --

    async def create_booking(
        self,
        property_id: str,
        customer_id: str,
        start_date: date,
        end_date: date,
        guest_count: int,
        status: BookingStatus | str = BookingStatus.PENDING,
        notes: str | None = None,
        total_amount: float | None = None,
        amount_paid: float = 0.0,
    ) -> BookingResult:
        status = _coerce_status(status)
        if status not in INITIAL_STATUSES:
            raise ValidationError(
                "invalid_initial_status",
                "New bookings must start as pending or confirmed.",
            )
        interval = DateInterval(start_date, end_date)
        validate_range(interval)
        validate_guest_count(guest_count)

        property_ref = await self._require_property(property_id)
        customer_ref = await self._require_customer(customer_id)
        if total_amount is None:
            total_amount = self._quote(property_ref, interval).total

        with self.index.locked(property_id):
            self.validator.validate(property_id, interval, guest_count)
            booking = self.store.create(
                property_id=property_id,
                customer_id=customer_id,
                start_date=start_date,
                end_date=end_date,
                status=status,
                guest_count=guest_count,
                total_amount=total_amount,
                amount_paid=amount_paid,
                notes=notes,
            )
            try:
                self.index.insert(property_id, booking.id, interval)
            except Exception:
                self.store.delete(booking.id)
                raise

        logger.info("Created booking %s for property %s", booking.id, property_id)
        self._notify(notifications.BOOKING_CREATED, booking, customer_name=customer_ref.name)

        warnings: list[str] = []
        if status is BookingStatus.CONFIRMED:
            warnings = await self._sync_confirmed(booking, property_ref, customer_ref)
        return BookingResult(booking, warnings)

    async def update_booking(self, booking_id: str, patch: BookingUpdate) -> BookingResult:
        changes = {
            key: value
            for key, value in patch.model_dump(exclude_unset=True).items()
            if value is not None
        }
        requested_status = changes.pop("status", None)

        while True:
            current = self._get_or_raise(booking_id)
            target_property_id = changes.get("property_id", current.property_id)
            property_ref = await self._require_property(target_property_id)
            if "customer_id" in changes:
                customer_ref = await self._require_customer(changes["customer_id"])
            else:
                customer_ref = await get_customer(self.client, current.customer_id)

            with self.index.locked(current.property_id, target_property_id):
                latest = self._get_or_raise(booking_id)
                if latest.property_id != current.property_id:
                    # moved by a concurrent writer; retake the right locks
                    continue
                updated, previous = self._apply_update(latest, changes, requested_status)
            break

        status_changed = updated.status != previous.status
        logger.info("Updated booking %s", booking_id)
        customer_name = customer_ref.name if customer_ref else None
        self._notify(notifications.BOOKING_UPDATED, updated, customer_name=customer_name)
        if status_changed:
            self._notify(
                notifications.BOOKING_STATUS_CHANGED,
                updated,
                customer_name=customer_name,
                status=updated.status.value,
                action=STATUS_CHANGE_MESSAGES[updated.status],
            )

        warnings: list[str] = []
        moved = (
            updated.property_id != previous.property_id
            or updated.start_date != previous.start_date
            or updated.end_date != previous.end_date
        )
        if updated.status is BookingStatus.CONFIRMED and (status_changed or moved):
            warnings = await self._sync_confirmed(updated, property_ref, customer_ref)
        return BookingResult(updated, warnings)

    def _apply_update(
        self,
        current: Booking,
        changes: dict[str, Any],
        requested_status: BookingStatus | None,
    ) -> tuple[Booking, Booking]:
        """Validate and write one update. Caller holds the property locks."""
        final_status = current.status
        if requested_status is not None and requested_status != current.status:
            assert_transition(current.status, requested_status)
            final_status = requested_status

        property_id = changes.get("property_id", current.property_id)
        interval = DateInterval(
            changes.get("start_date", current.start_date),
            changes.get("end_date", current.end_date),
        )
        guest_count = changes.get("guest_count", current.guest_count)

        was_active = current.is_active
        will_be_active = final_status in ACTIVE_STATUSES
        if will_be_active:
            self.validator.validate(
                property_id, interval, guest_count, exclude_booking_id=current.id
            )
        else:
            validate_range(interval)
            validate_guest_count(guest_count)

        updated = self.store.update(current.id, {**changes, "status": final_status})
        if was_active:
            self.index.remove(current.property_id, current.id)
        if will_be_active:
            try:
                self.index.insert(property_id, current.id, interval)
            except Exception:
                self.store.put(current)
                if was_active:
                    self.index.insert(
                        current.property_id,
                        current.id,
                        DateInterval(current.start_date, current.end_date),
                    )
                raise
        return updated, current

    async def transition_status(
        self, booking_id: str, new_status: BookingStatus | str
    ) -> BookingResult:
        new_status = _coerce_status(new_status)

        while True:
            current = self._get_or_raise(booking_id)
            # reject illegal transitions before touching the catalog
            assert_transition(current.status, new_status)
            property_ref = await get_property(self.client, current.property_id)
            customer_ref = await get_customer(self.client, current.customer_id)

            with self.index.locked(current.property_id):
                latest = self._get_or_raise(booking_id)
                if latest.property_id != current.property_id:
                    continue
                effects = assert_transition(latest.status, new_status)
                updated = self.store.update(booking_id, {"status": new_status})
                if effects.release_interval:
                    self.index.remove(latest.property_id, booking_id)
            break

        logger.info(
            "Booking %s moved from %s to %s", booking_id, latest.status.value, new_status.value
        )
        self._notify(
            notifications.BOOKING_STATUS_CHANGED,
            updated,
            customer_name=customer_ref.name if customer_ref else None,
            status=new_status.value,
            action=STATUS_CHANGE_MESSAGES[new_status],
        )

        warnings: list[str] = []
        if effects.sync_calendar and property_ref is not None:
            warnings = await self._sync_confirmed(updated, property_ref, customer_ref)
        return BookingResult(updated, warnings)

    async def delete_booking(self, booking_id: str) -> Booking:
        """Administrative hard delete. Frees the interval if it was active."""
        while True:
            current = self._get_or_raise(booking_id)
            customer_ref = await get_customer(self.client, current.customer_id)

            with self.index.locked(current.property_id):
                latest = self._get_or_raise(booking_id)
                if latest.property_id != current.property_id:
                    continue
                self.store.delete(booking_id)
                self.index.remove(latest.property_id, booking_id)
            break

        logger.info("Deleted booking %s", booking_id)
        self._notify(
            notifications.BOOKING_DELETED,
            latest,
            customer_name=customer_ref.name if customer_ref else None,
        )
        return latest

    # -- reads --

    def get_booking(self, booking_id: str) -> Booking:
        return self._get_or_raise(booking_id)

    async def _filtered(self, booking_filter: BookingFilter) -> tuple[list[Booking], CatalogNames]:
        snapshot = self.store.snapshot()
        names = CatalogNames()
        if booking_filter.needs_names:
            names = await self.resolve_names(snapshot)
        rows = apply_filter(snapshot, booking_filter, names.property_names, names.customer_names)
        return rows, names

    async def list_bookings(self, booking_filter: BookingFilter | None = None) -> list[Booking]:
        rows, _ = await self._filtered(booking_filter or BookingFilter())
        return sort_bookings(rows)

    async def get_month_view(
        self,
        month: str,
        property_id: str | None = None,
        status: BookingStatus | str | None = None,
    ) -> MonthView:
        try:
            parse_month(month)
        except ValueError as exc:
            raise ValidationError("invalid_month", str(exc)) from None
        booking_filter = BookingFilter(property_id=property_id, status=_status_filter(status))
        rows, _ = await self._filtered(booking_filter)
        return build_month_view(rows, month)

    async def get_day_detail(
        self,
        day: date,
        property_id: str | None = None,
        status: BookingStatus | str | None = None,
    ) -> list[Booking]:
        booking_filter = BookingFilter(property_id=property_id, status=_status_filter(status))
        rows, _ = await self._filtered(booking_filter)
        return bookings_on_day(rows, day)

    async def get_stats(
        self, booking_filter: BookingFilter | None = None, today: date | None = None
    ) -> BookingStats:
        rows, _ = await self._filtered(booking_filter or BookingFilter())
        names = await self.resolve_names(rows)
        return build_stats(
            rows,
            today or date.today(),
            property_names=names.property_names,
            customer_names=names.customer_names,
        )

    def _quote(self, property_ref: PropertyRef, interval: DateInterval) -> PriceQuote:
        return quote_stay(
            property_ref,
            interval,
            cleaning_fee_rate=self.cleaning_fee_rate,
            service_fee_rate=self.service_fee_rate,
        )

    async def quote(self, property_id: str, start_date: date, end_date: date) -> PriceQuote:
        interval = DateInterval(start_date, end_date)
        validate_range(interval)
        property_ref = await self._require_property(property_id)
        return self._quote(property_ref, interval)
