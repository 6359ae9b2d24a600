# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and scheduled tasks.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (appointment reminders)
# - config.py: Worker settings and the beat schedule
#
# Usage:
#   # Start worker and scheduler
#   celery -A workers.celery_app worker -Q default,reminders --loglevel=info
#   celery -A workers.celery_app beat --loglevel=info
#
#   # Run reminders for a specific day
#   from workers.tasks import send_appointment_reminders
#   send_appointment_reminders.delay("2025-01-15")
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
