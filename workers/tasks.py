# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines scheduled background tasks.
#
# Tasks:
# - send_appointment_reminders: Daily run of send_appointment_reminders()
#   (scheduled by Celery beat, see workers/config.py)
# =============================================================================

import logging
from datetime import date
from typing import Any

from celery import shared_task

from app.exceptions import DatabaseError
from core.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


# =============================================================================
# Appointment Reminders
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_appointment_reminders")
def send_appointment_reminders(self, run_date: str | None = None) -> dict[str, Any]:
    """
    Generate appointment reminder notifications for one day.

    Args:
        run_date: 'YYYY-MM-DD'; defaults to today in REMINDER_TIMEZONE

    Returns:
        Dict with:
        - ok: bool
        - run_date: Day the reminders were generated for
        - sent: Whatever the procedure returned (usually a count)
        - error: Database message (only when ok is false)
    """
    day = date.fromisoformat(run_date) if run_date else None

    try:
        ran_for, sent = NotificationService.send_reminders(day)
    except DatabaseError as e:
        if self.request.retries < self.max_retries:
            logger.warning(f"Reminder run failed, retrying: {e.message}")
            raise self.retry(exc=e)
        logger.error(f"Reminder run failed for good: {e.message}")
        return {
            "ok": False,
            "run_date": run_date,
            "error": e.message,
        }

    return {
        "ok": True,
        "run_date": ran_for.isoformat(),
        "sent": sent,
    }
