"""Daily scan for conditions care-home managers must be told about."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import httpx
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from carenotes.models import (
    Bed,
    BedMaintenance,
    BedState,
    MaintenanceState,
    Organization,
    StaffMember,
)
from carenotes.services.notifier import Notice, send_notice
from carenotes.tenancy.context import TenantSettings

logger = logging.getLogger(__name__)

PIN_EXPIRY_WARNING_DAYS = 7


def _overdue_maintenance(db: Session, organization: Organization, today: date) -> list[Notice]:
    stmt = select(BedMaintenance, Bed.number).join(Bed, Bed.id == BedMaintenance.bed_id).where(
        BedMaintenance.organization_id == organization.id,
        BedMaintenance.status != MaintenanceState.COMPLETED,
        BedMaintenance.expected_end_date.is_not(None),
        BedMaintenance.expected_end_date < today,
    )
    notices = []
    for job, bed_number in db.execute(stmt).all():
        notices.append(
            Notice(
                kind="maintenance_overdue",
                organization_id=str(organization.id),
                tenant_id=organization.tenant_id,
                message=f"Maintenance on bed {bed_number} is overdue",
                details={
                    "maintenance_id": str(job.id),
                    "bed_number": bed_number,
                    "type": job.type,
                    "expected_end_date": job.expected_end_date.isoformat(),
                },
            )
        )
    return notices


def _expiring_pins(db: Session, organization: Organization, today: date) -> list[Notice]:
    window_start = datetime.combine(today, time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(
        today + timedelta(days=PIN_EXPIRY_WARNING_DAYS), time.max, tzinfo=timezone.utc
    )
    stmt = select(StaffMember).where(
        StaffMember.organization_id == organization.id,
        StaffMember.temporary_pin.is_(False),
        StaffMember.pin_expires_at.is_not(None),
        StaffMember.pin_expires_at >= window_start,
        StaffMember.pin_expires_at <= window_end,
    )
    return [
        Notice(
            kind="pin_expiring",
            organization_id=str(organization.id),
            tenant_id=organization.tenant_id,
            message=f"PIN for {staff.full_name} expires soon",
            details={"staff_id": str(staff.id), "expires_at": staff.pin_expires_at.isoformat()},
        )
        for staff in db.execute(stmt).scalars()
    ]


def _occupancy_alert(db: Session, organization: Organization) -> list[Notice]:
    stmt = select(Bed.status, func.count(Bed.id)).where(
        Bed.organization_id == organization.id
    ).group_by(Bed.status)
    counts = {status: count for status, count in db.execute(stmt).all()}
    total = sum(counts.values())
    if not total:
        return []

    rate = counts.get(BedState.OCCUPIED, 0) / total
    try:
        threshold = TenantSettings.from_mapping(organization.settings).occupancy_alert_threshold
    except ValidationError:
        logger.warning(
            "invalid tenant settings, using default occupancy threshold",
            extra={"tenant_id": organization.tenant_id},
        )
        threshold = TenantSettings().occupancy_alert_threshold
    if rate < threshold:
        return []
    return [
        Notice(
            kind="occupancy_high",
            organization_id=str(organization.id),
            tenant_id=organization.tenant_id,
            message=f"Occupancy at {rate:.0%}",
            details={"occupancy_rate": round(rate, 4), "threshold": threshold, "total_beds": total},
        )
    ]


def collect_due_notifications(db: Session, today: date | None = None) -> list[Notice]:
    """Gather every notice due today across active organizations."""

    today = today or datetime.now(timezone.utc).date()
    organizations = db.execute(
        select(Organization).where(Organization.is_active.is_(True)).order_by(Organization.tenant_id)
    ).scalars()

    notices: list[Notice] = []
    for organization in organizations:
        notices.extend(_overdue_maintenance(db, organization, today))
        notices.extend(_expiring_pins(db, organization, today))
        notices.extend(_occupancy_alert(db, organization))
    return notices


def run_notification_check(db: Session, today: date | None = None) -> dict[str, Any]:
    """Send today's notices; a failed delivery is logged and counted, not raised."""

    notices = collect_due_notifications(db, today)
    sent = 0
    failed = 0
    by_kind: dict[str, int] = {}
    for notice in notices:
        by_kind[notice.kind] = by_kind.get(notice.kind, 0) + 1
        try:
            send_notice(notice)
        except (httpx.HTTPError, RuntimeError, ValueError):
            failed += 1
            logger.exception(
                "notification delivery failed",
                extra={"kind": notice.kind, "tenant_id": notice.tenant_id},
            )
        else:
            sent += 1

    summary = {"total": len(notices), "sent": sent, "failed": failed, "by_kind": by_kind}
    logger.info("notification check finished", extra=summary)
    return summary
