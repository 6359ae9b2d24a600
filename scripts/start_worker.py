#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Reminder Worker Entry Point
# =============================================================================
# Starts a Celery worker with an embedded beat scheduler, so a single process
# both schedules and runs the daily appointment reminders. Run exactly one of
# these per deployment; extra workers should be started without --beat.
#
# Usage (from the project root, after `pip install -e .`):
#   python scripts/start_worker.py
#
# Prerequisites:
#   - Redis reachable at REDIS_URL
#   - Supabase credentials in the environment or .env
# =============================================================================

from workers.celery_app import celery_app
from workers.config import REMINDER_QUEUE


def main():
    celery_app.worker_main([
        "worker",
        "--beat",
        f"--queues=default,{REMINDER_QUEUE}",
        "--loglevel=info",
        "--concurrency=1",
    ])


if __name__ == "__main__":
    main()
