from datetime import date, timedelta

import httpx

from carenotes.models import Bed, BedMaintenance, BedState, MaintenanceState, StaffMember, StaffRole
from carenotes.models.base import utcnow
from carenotes.core.config import settings
from carenotes.services import notification_check, notifier
from carenotes.services.notification_check import collect_due_notifications, run_notification_check

TODAY = date(2026, 10, 18)


def _bed(db, organization, number, status=BedState.OCCUPIED):
    bed = Bed(organization_id=organization.id, number=number, status=status)
    db.add(bed)
    db.commit()
    return bed


def _kinds(notices):
    return sorted(notice.kind for notice in notices)


def test_overdue_maintenance_is_reported(db, make_org):
    organization = make_org()
    bed = _bed(db, organization, "12", BedState.MAINTENANCE)
    _bed(db, organization, "13", BedState.AVAILABLE)
    db.add_all(
        [
            BedMaintenance(
                organization_id=organization.id,
                bed_id=bed.id,
                type="call bell repair",
                start_date=TODAY - timedelta(days=5),
                expected_end_date=TODAY - timedelta(days=1),
                status=MaintenanceState.IN_PROGRESS,
            ),
            BedMaintenance(
                organization_id=organization.id,
                bed_id=bed.id,
                type="repaint",
                start_date=TODAY - timedelta(days=20),
                expected_end_date=TODAY - timedelta(days=10),
                status=MaintenanceState.COMPLETED,
            ),
            BedMaintenance(
                organization_id=organization.id,
                bed_id=bed.id,
                type="new mattress",
                start_date=TODAY,
                expected_end_date=TODAY + timedelta(days=2),
                status=MaintenanceState.PENDING,
            ),
        ]
    )
    db.commit()

    notices = collect_due_notifications(db, TODAY)

    assert _kinds(notices) == ["maintenance_overdue"]
    assert notices[0].details["bed_number"] == "12"
    assert notices[0].tenant_id == organization.tenant_id


def test_expiring_pins_are_reported(db, make_org):
    organization = make_org()
    now = utcnow()
    db.add_all(
        [
            StaffMember(
                organization_id=organization.id,
                first_name="Expiring",
                last_name="Soon",
                role=StaffRole.NURSE,
                pin_expires_at=now + timedelta(days=3),
            ),
            StaffMember(
                organization_id=organization.id,
                first_name="Still",
                last_name="Valid",
                role=StaffRole.NURSE,
                pin_expires_at=now + timedelta(days=60),
            ),
            StaffMember(
                organization_id=organization.id,
                first_name="Already",
                last_name="Expired",
                role=StaffRole.NURSE,
                pin_expires_at=now - timedelta(days=2),
            ),
        ]
    )
    db.commit()

    notices = collect_due_notifications(db, now.date())

    assert _kinds(notices) == ["pin_expiring"]
    assert "Expiring Soon" in notices[0].message


def test_high_occupancy_uses_tenant_threshold(db, make_org):
    strict = make_org(settings={"occupancy_alert_threshold": 0.5})
    relaxed = make_org()
    for organization in (strict, relaxed):
        _bed(db, organization, "1")
        _bed(db, organization, "2", BedState.AVAILABLE)

    notices = collect_due_notifications(db, TODAY)

    assert [notice.tenant_id for notice in notices] == [strict.tenant_id]
    assert notices[0].kind == "occupancy_high"
    assert notices[0].details["occupancy_rate"] == 0.5


def test_inactive_organizations_are_skipped(db, make_org):
    organization = make_org(is_active=False)
    _bed(db, organization, "1")

    assert collect_due_notifications(db, TODAY) == []


def test_run_sends_notices_in_mock_mode(db, make_org):
    organization = make_org()
    _bed(db, organization, "1")

    summary = run_notification_check(db, TODAY)

    assert summary == {"total": 1, "sent": 1, "failed": 0, "by_kind": {"occupancy_high": 1}}


def test_delivery_failures_are_counted(db, make_org, monkeypatch):
    organization = make_org()
    _bed(db, organization, "1")

    def _unreachable(notice):
        raise httpx.ConnectError("webhook unreachable")

    monkeypatch.setattr(notification_check, "send_notice", _unreachable)

    summary = run_notification_check(db, TODAY)

    assert summary["failed"] == 1
    assert summary["sent"] == 0


def test_invalid_tenant_settings_fall_back_to_default_threshold(db, make_org):
    organizations = [
        make_org(),
        make_org(settings={"occupancy_alert_threshold": 1.5}),
        make_org(),
    ]
    for organization in organizations:
        _bed(db, organization, "1")

    summary = run_notification_check(db, TODAY)

    assert summary == {"total": 3, "sent": 3, "failed": 0, "by_kind": {"occupancy_high": 3}}


def _webhook(monkeypatch, handler):
    monkeypatch.setattr(settings, "notification_mock_mode", False)
    monkeypatch.setattr(settings, "notification_webhook_url", "https://hooks.example.com/notices")
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        notification_check,
        "send_notice",
        lambda notice: notifier.send_notice(notice, transport=transport),
    )


def test_webhook_reply_without_json_object_still_counts_as_sent(db, make_org, monkeypatch):
    replies = iter(
        [
            httpx.Response(200, text="OK"),
            httpx.Response(200, json=["queued"]),
            httpx.Response(202, json={"id": "notice-3"}),
        ]
    )
    _webhook(monkeypatch, lambda request: next(replies))
    for _ in range(3):
        _bed(db, make_org(), "1")

    summary = run_notification_check(db, TODAY)

    assert summary["sent"] == 3
    assert summary["failed"] == 0


def test_webhook_error_status_is_counted_as_failure(db, make_org, monkeypatch):
    _webhook(monkeypatch, lambda request: httpx.Response(503, text="down"))
    _bed(db, make_org(), "1")

    summary = run_notification_check(db, TODAY)

    assert summary["sent"] == 0
    assert summary["failed"] == 1
