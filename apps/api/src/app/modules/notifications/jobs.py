"""
Notification Background Jobs

Schedules the notification run on a fixed interval.

Design Principles:
- The job is idempotent: unread notifications suppress repeated alerts
- Runs are serialized by the run lock (and max_instances=1 in the scheduler)
- A failed run is logged and left for the next tick; no retry inside a run
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.scheduler import register_job
from app.modules.notifications.service import NotificationRunError, generate_notifications

logger = logging.getLogger(__name__)

# Job ID for registration and manual triggering
JOB_ID_GENERATE_NOTIFICATIONS = "notifications_generate"


async def run_notification_check() -> dict[str, Any]:
    """
    Scheduled entry point for one notification run.

    Returns:
        Dict with the run summary

    Raises:
        NotificationRunError: Re-raised after logging so the scheduler
            records the run as failed
    """
    try:
        summary = await generate_notifications()
    except NotificationRunError as e:
        phase = e.phase.value if e.phase else "unknown"
        logger.error(f"Notification job failed during {phase} ({e.error_code}): {e.message}")
        raise

    return summary.model_dump(mode="json")


def register_notification_jobs() -> None:
    """
    Register the notification job with the scheduler.

    Call during application startup, before the scheduler is started.
    """
    if not settings.notification_scheduler_enabled:
        logger.info("Notification scheduler disabled; runs only via the API trigger")
        return

    interval = settings.notification_check_interval_minutes
    register_job(
        job_id=JOB_ID_GENERATE_NOTIFICATIONS,
        func=run_notification_check,
        trigger=IntervalTrigger(minutes=interval),
    )
    logger.info(f"Registered job: {JOB_ID_GENERATE_NOTIFICATIONS} (interval: {interval} minutes)")
