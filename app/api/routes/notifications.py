from fastapi import APIRouter, Depends, Query

from app.api import deps
from app.schemas.calendar import NotificationListResponse, NotificationResponse
from app.services.notifications import NotificationSink

router = APIRouter(prefix="/v1.0/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(50, ge=1, le=100),
    sink: NotificationSink = Depends(deps.get_notification_sink),
):
    """Most recent booking notifications, newest first."""
    return NotificationListResponse(
        items=[
            NotificationResponse(
                kind=item.kind,
                title=item.title,
                description=item.description,
                payload=item.payload,
                created_at=item.created_at,
            )
            for item in sink.recent(limit)
        ]
    )
