# =============================================================================
# core/services/notification_service.py - Notification Bell and Reminders
# =============================================================================
# Notifications are rows written by database triggers and procedures
# (appointment reminders, training assignments, ...). The API only lists
# them and lets the recipient mark or delete their own rows.
#
# Appointment reminders are generated by send_appointment_reminders(); it
# runs daily from Celery beat and can be triggered by managers.
# =============================================================================

import logging
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from app.config import settings
from app.exceptions import DatabaseError, NotFoundError
from core.models.notification import Notification
from core.models.requester import RequesterContext
from core.services.requester_service import require_company_or_manager
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now

logger = logging.getLogger(__name__)


def reminder_run_date(now: datetime | None = None, tz_name: str | None = None) -> date:
    """Today's date in the reminder timezone."""
    now = now or utc_now()
    return now.astimezone(ZoneInfo(tz_name or settings.REMINDER_TIMEZONE)).date()


class NotificationService:
    """
    The caller's notifications plus the reminder run.
    """

    @staticmethod
    def list_for(user_id: str, limit: int = 50) -> tuple[list[Notification], int]:
        """
        Newest-first notifications of a user.

        Returns:
            (items, unread_count) where unread_count covers the returned items
        """
        try:
            rows = SupabaseClient.fetch_notifications(user_id, limit=limit)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="fetch_notifications")

        items = [Notification(**_stringify_ids(row)) for row in rows]
        unread = sum(1 for n in items if not n.is_read)
        return items, unread

    @staticmethod
    def mark(user_id: str, notification_id: str, is_read: bool) -> None:
        try:
            updated = SupabaseClient.update_notifications(
                user_id, {"is_read": is_read}, notification_id=notification_id
            )
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="update_notification")
        if not updated:
            raise NotFoundError("Notification", notification_id)

    @staticmethod
    def mark_all_read(user_id: str) -> int:
        try:
            updated = SupabaseClient.update_notifications(user_id, {"is_read": True}, only_unread=True)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="mark_all_read")
        logger.debug(f"Marked {updated} notifications read for {user_id}")
        return updated

    @staticmethod
    def delete(user_id: str, notification_id: str) -> None:
        try:
            deleted = SupabaseClient.delete_notification(user_id, notification_id)
        except SupabaseClientError as e:
            raise DatabaseError(e.message, operation="delete_notification")
        if not deleted:
            raise NotFoundError("Notification", notification_id)

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    @staticmethod
    def send_reminders(run_date: date | None = None) -> tuple[date, Any]:
        """
        Run send_appointment_reminders() for a day.

        Args:
            run_date: Day to remind about; defaults to today in REMINDER_TIMEZONE

        Returns:
            (run_date, whatever the procedure returned)
        """
        run_date = run_date or reminder_run_date()
        try:
            sent = SupabaseClient.call_rpc("send_appointment_reminders", {"p_run_date": run_date.isoformat()})
        except SupabaseClientError as e:
            logger.error(f"Appointment reminders for {run_date} failed: {e.message}")
            raise DatabaseError(e.message, operation="send_appointment_reminders")

        logger.info(f"Appointment reminders sent for {run_date}: {sent}")
        return run_date, sent

    @staticmethod
    def trigger_reminders(ctx: RequesterContext, run_date: date | None = None) -> tuple[date, Any]:
        """Manual reminder run; managers and above."""
        require_company_or_manager(ctx)
        return NotificationService.send_reminders(run_date)


def _stringify_ids(row: dict[str, Any]) -> dict[str, Any]:
    row = dict(row)
    if row.get("id") is not None:
        row["id"] = str(row["id"])
    return row
