from __future__ import annotations

from datetime import date
from typing import Any

from celery.utils.log import get_task_logger

from carenotes.db.session import SessionLocal
from carenotes.services.notification_check import run_notification_check
from carenotes_jobs.celery_app import celery_app

logger = get_task_logger(__name__)


@celery_app.task(name="jobs.daily_notification_check")
def daily_notification_check(run_date: str | None = None) -> dict[str, Any]:
    """Send overdue-maintenance, PIN-expiry and occupancy notices."""

    today = date.fromisoformat(run_date) if run_date else None
    session = SessionLocal()
    try:
        summary = run_notification_check(session, today)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Daily notification check failed")
        raise
    finally:
        session.close()

    logger.info(
        "Daily notification check sent %s of %s notices",
        summary["sent"],
        summary["total"],
    )
    return summary
