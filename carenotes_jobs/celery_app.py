from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from carenotes_jobs.config import settings

celery_app = Celery(
    "carenotes",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["carenotes_jobs.tasks"],
)

celery_app.conf.timezone = settings.timezone
celery_app.conf.broker_connection_retry_on_startup = True
celery_app.conf.beat_schedule = {
    "daily-notification-check": {
        "task": "jobs.daily_notification_check",
        "schedule": crontab(hour=settings.notification_check_hour, minute=0),
    },
}
