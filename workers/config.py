# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# The worker only runs the daily appointment reminder job, so the settings
# are tuned for one short, idempotent task a day on its own queue.
# =============================================================================

from celery.schedules import crontab

from app.config import settings

REMINDER_TASK = "workers.tasks.send_appointment_reminders"
REMINDER_QUEUE = "reminders"

# A morning run that could not start within this window is dropped
REMINDER_RUN_WINDOW = 6 * 3600


class CeleryConfig:
    """
    Applied with app.config_from_object("workers.config:CeleryConfig").
    """

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL

    # Ack after the run so a crashed worker's job is redelivered;
    # the procedure skips reminders that were already sent
    task_acks_late = True
    worker_prefetch_multiplier = 1

    # Results are only inspected for the latest run
    result_expires = 86400

    # The procedure call is a single RPC
    task_time_limit = 120
    task_soft_time_limit = 90

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    task_default_queue = "default"
    task_queues = {
        "default": {"exchange": "default", "routing_key": "default"},
        REMINDER_QUEUE: {"exchange": REMINDER_QUEUE, "routing_key": REMINDER_QUEUE},
    }
    task_routes = {REMINDER_TASK: {"queue": REMINDER_QUEUE}}

    # Database hiccups are retried every 10 minutes, three times
    task_annotations = {
        REMINDER_TASK: {"max_retries": 3, "default_retry_delay": 600},
    }

    # Beat crontabs are evaluated in the reminder timezone
    timezone = settings.REMINDER_TIMEZONE
    enable_utc = True

    beat_schedule = {
        "send-appointment-reminders": {
            "task": REMINDER_TASK,
            "schedule": crontab(hour=settings.REMINDER_HOUR, minute=0),
            "options": {"queue": REMINDER_QUEUE, "expires": REMINDER_RUN_WINDOW},
        },
    }

    worker_send_task_events = True
    task_send_sent_event = True
