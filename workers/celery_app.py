# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# The Celery app behind the daily appointment reminders. The worker must
# consume the "reminders" queue, and exactly one beat process schedules the
# run (scripts/start_worker.py starts both in one process).
#
# Usage:
#   celery -A workers.celery_app worker -Q default,reminders --loglevel=info
#   celery -A workers.celery_app beat --loglevel=info
# =============================================================================

import logging
from urllib.parse import urlsplit

from celery import Celery
from celery.signals import beat_init, task_failure, task_postrun, task_prerun
from dotenv import load_dotenv

# .env must be in os.environ before app.config builds the settings
load_dotenv()

from app.config import settings  # noqa: E402
from workers.config import CeleryConfig  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def redact_url(url: str) -> str:
    """Broker URL without its password, for logs."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    user = f"{parts.username}:***@" if parts.username else ":***@"
    return parts._replace(netloc=f"{user}{host}").geturl()


def create_celery_app() -> Celery:
    """Celery app with the reminder task module and CeleryConfig applied."""
    app = Celery("homecare_worker", include=["workers.tasks"])
    app.config_from_object(CeleryConfig)
    logger.info(f"Celery app created with broker: {redact_url(CeleryConfig.broker_url)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Lifecycle logging
# =============================================================================

@beat_init.connect
def beat_init_handler(sender=None, **extra):
    logger.info(
        f"Beat scheduling appointment reminders daily at "
        f"{settings.REMINDER_HOUR:02d}:00 {settings.REMINDER_TIMEZONE}"
    )


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    logger.info(f"Task started: {task.name} [{task_id}] args={args}")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, retval=None, state=None, **extra):
    logger.info(f"Task finished: {task.name} [{task_id}] state={state} result={retval}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - {exception}")
