from functools import lru_cache

from app.core.config import get_settings
from app.db.base import get_supabase
from app.services.booking_service import BookingService
from app.services.calendar_sync import GoogleCalendarSyncAdapter
from app.services.notifications import NotificationSink


@lru_cache
def get_notification_sink() -> NotificationSink:
    settings = get_settings()
    return NotificationSink(client=get_supabase(), max_items=settings.notification_feed_size)


@lru_cache
def get_booking_service() -> BookingService:
    """Process-wide booking service.

    The store and availability index are in-process, so every request
    must share one instance.
    """
    settings = get_settings()
    return BookingService(
        client=get_supabase(),
        sync_adapter=GoogleCalendarSyncAdapter(
            api_base=settings.google_calendar_api_base,
            access_token=settings.google_calendar_access_token,
        ),
        notifier=get_notification_sink(),
        sync_timeout=settings.calendar_sync_timeout_seconds,
        time_zone=settings.calendar_time_zone,
        cleaning_fee_rate=settings.cleaning_fee_rate,
        service_fee_rate=settings.service_fee_rate,
    )
