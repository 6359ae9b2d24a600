# =============================================================================
# app/routers/notifications.py - Notification Bell Endpoints
# =============================================================================
# The caller only ever sees and changes their own notifications.
# =============================================================================

from fastapi import APIRouter, Path, Query, Response, status
from pydantic import BaseModel

from app.dependencies import CurrentUser, RequesterDep
from core.models.notification import (
    NotificationList,
    NotificationUpdate,
    ReminderRequest,
    ReminderResponse,
)
from core.services.notification_service import NotificationService

router = APIRouter()


class ReadAllResponse(BaseModel):
    ok: bool = True
    updated: int


@router.get("", response_model=NotificationList)
async def list_notifications(
    user: CurrentUser,
    limit: int = Query(default=50, ge=1, le=200),
):
    """Newest-first notifications plus the unread count."""
    items, unread = NotificationService.list_for(str(user.id), limit=limit)
    return NotificationList(items=items, unread_count=unread)


@router.post("/read-all", response_model=ReadAllResponse)
async def mark_all_read(user: CurrentUser):
    """Mark every unread notification as read."""
    return ReadAllResponse(updated=NotificationService.mark_all_read(str(user.id)))


@router.post("/reminders", response_model=ReminderResponse)
async def send_reminders(requester: RequesterDep, request: ReminderRequest | None = None):
    """
    Run the appointment reminders now.

    Normally done by the daily beat task; managers and above may trigger it.
    """
    run_date, sent = NotificationService.trigger_reminders(
        requester, request.run_date if request else None
    )
    return ReminderResponse(run_date=run_date.isoformat(), sent=sent)


@router.patch("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification(
    user: CurrentUser,
    request: NotificationUpdate,
    notification_id: str = Path(..., min_length=1),
):
    """Mark one notification read or unread."""
    NotificationService.mark(str(user.id), notification_id, request.is_read)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    user: CurrentUser,
    notification_id: str = Path(..., min_length=1),
):
    """Delete one notification."""
    NotificationService.delete(str(user.id), notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
