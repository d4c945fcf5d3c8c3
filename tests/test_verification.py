import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from carenotes.core.errors import NotFoundError
from carenotes.db.session import SessionLocal
from carenotes.models import AuditLog, AuditLogStatus, Resident, StaffMember, StaffRole
from carenotes.models.base import utcnow
from carenotes.schemas import PINVerification, VerificationType, WitnessVerification
from carenotes.services import verification


def _staff(db, organization, role=StaffRole.NURSE, pin="2468", **overrides):
    staff = StaffMember(
        organization_id=organization.id,
        first_name="Sam",
        last_name="Okafor",
        role=role,
        barcode=f"STF-{uuid.uuid4().hex[:8]}",
        pin_hash=verification.hash_pin(pin),
        pin_expires_at=utcnow() + timedelta(days=30),
        **overrides,
    )
    db.add(staff)
    db.commit()
    return staff


@pytest.fixture
def organization(make_org):
    return make_org()


@pytest.fixture
def context(organization, context_for):
    return context_for(organization)


def _check(db, context, staff, pin, kind=VerificationType.ADMINISTRATION):
    result = verification.verify_pin(
        db, context, PINVerification(staff_id=staff.id, pin=pin, type=kind)
    )
    db.commit()
    return result


def test_correct_pin(db, organization, context):
    staff = _staff(db, organization)

    result = _check(db, context, staff, "2468")

    assert result.success
    assert result.data["staff_name"] == "Sam Okafor"
    assert result.message == "Welcome back Sam"


def test_pin_format_is_checked_first(db, organization, context):
    staff = _staff(db, organization)

    result = _check(db, context, staff, "24a8")

    assert not result.success
    assert result.retry
    db.refresh(staff)
    assert staff.failed_attempts == 0


def test_three_wrong_pins_lock_the_account(db, organization, context):
    staff = _staff(db, organization)

    first = _check(db, context, staff, "1111")
    second = _check(db, context, staff, "1111")
    third = _check(db, context, staff, "1111")

    assert first.attempts_left == 2
    assert second.attempts_left == 1
    assert second.hint == "Last try before your account is locked"
    assert third.locked and third.requires_manager

    after = _check(db, context, staff, "2468")
    assert not after.success
    assert after.locked


def test_pin_check_locks_the_staff_row(organization, context):
    stmt = verification._staff_query(context, uuid.uuid4(), lock=True)
    assert "FOR UPDATE" in str(stmt.compile(dialect=postgresql.dialect()))


def test_failures_recorded_by_another_session_are_counted(db, organization, context):
    staff = _staff(db, organization)
    assert staff.failed_attempts == 0

    other = SessionLocal()
    try:
        _check(other, context, staff, "1111")
        _check(other, context, staff, "1111")
    finally:
        other.close()

    result = verification.verify_pin(
        db,
        context,
        PINVerification(staff_id=staff.id, pin="1111", type=VerificationType.ADMINISTRATION),
    )

    assert result.locked
    assert staff.failed_attempts == 3
    db.rollback()


def test_successful_pin_resets_failures(db, organization, context):
    staff = _staff(db, organization)
    _check(db, context, staff, "9999")

    assert _check(db, context, staff, "2468").success
    db.refresh(staff)
    assert staff.failed_attempts == 0


def test_temporary_pin_must_be_changed(db, organization, context):
    staff = _staff(db, organization, temporary_pin=True)

    result = _check(db, context, staff, "2468")

    assert not result.success
    assert result.requires_change


def test_expired_pin(db, organization, context):
    staff = _staff(db, organization)
    staff.pin_expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    result = _check(db, context, staff, "2468")

    assert result.expired
    assert not result.success


def test_carer_cannot_handle_controlled_drugs(db, organization, context):
    staff = _staff(db, organization, role=StaffRole.CARER)

    controlled = _check(db, context, staff, "2468", VerificationType.CONTROLLED_DRUG)
    witness = _check(db, context, staff, "2468", VerificationType.WITNESS)

    assert controlled.requires_escalation
    assert "controlled drugs" in controlled.message
    assert witness.success


def test_staff_from_other_organization_is_not_found(db, make_org, context):
    other = make_org()
    staff = _staff(db, other)

    result = _check(db, context, staff, "2468")

    assert not result.success
    assert result.message == "Staff ID not found"


def test_pin_checks_are_audited(db, organization, context):
    staff = _staff(db, organization)
    _check(db, context, staff, "2468")
    _check(db, context, staff, "0000")

    entries = db.execute(select(AuditLog)).scalars().all()
    assert sorted(entry.status.value for entry in entries) == [
        AuditLogStatus.FAILURE.value,
        AuditLogStatus.SUCCESS.value,
    ]
    assert {entry.entity_type for entry in entries} == {"staff_pin_verification"}


def test_witness_must_be_a_different_person(db, organization, context):
    staff = _staff(db, organization)

    result = verification.verify_witness(
        db,
        context,
        WitnessVerification(administrator_id=staff.id, witness_id=staff.id, witness_pin="2468"),
    )

    assert not result.success
    assert result.retry


def test_witness_confirmed(db, organization, context):
    administrator = _staff(db, organization)
    witness = _staff(db, organization, role=StaffRole.CARER, pin="1357")

    result = verification.verify_witness(
        db,
        context,
        WitnessVerification(
            administrator_id=administrator.id, witness_id=witness.id, witness_pin="1357"
        ),
    )

    assert result.success
    assert result.message == "Witness confirmed"
    assert result.data["administrator_id"] == str(administrator.id)


def test_update_pin_rejects_repeated_digits(db, organization, context):
    staff = _staff(db, organization)

    result = verification.update_pin(db, context, staff.id, "7777")

    assert not result.success


def test_update_pin_then_verify(db, organization, context):
    staff = _staff(db, organization, temporary_pin=True)

    assert verification.update_pin(db, context, staff.id, "2580").success
    db.commit()

    assert _check(db, context, staff, "2580").success
    db.refresh(staff)
    assert not staff.temporary_pin
    assert staff.pin_expires_at is not None


def test_temporary_pin_unlocks_and_requires_change(db, organization, context):
    staff = _staff(db, organization, account_locked=True, failed_attempts=3)

    pin = verification.issue_temporary_pin(db, context, staff.id)
    db.commit()

    assert len(pin) == 4 and pin.isdigit()
    result = _check(db, context, staff, pin)
    assert result.requires_change


def test_unlock_staff(db, organization, context):
    staff = _staff(db, organization, account_locked=True, failed_attempts=3)

    verification.unlock_staff(db, context, staff.id)
    db.commit()

    assert _check(db, context, staff, "2468").success


def test_unknown_staff_management_raises(db, context):
    with pytest.raises(NotFoundError):
        verification.unlock_staff(db, context, uuid.uuid4())


def test_barcode_lookup(db, organization, context):
    staff = _staff(db, organization)
    resident = Resident(
        organization_id=organization.id, first_name="Edith", last_name="Walsh", barcode="RES-1"
    )
    db.add(resident)
    db.commit()

    resident_result = verification.verify_barcode(db, context, "RES-1")
    staff_result = verification.verify_barcode(db, context, staff.barcode)
    unknown = verification.verify_barcode(db, context, "NOPE")

    assert resident_result.data["type"] == "RESIDENT"
    assert resident_result.data["display_name"] == "Edith Walsh"
    assert staff_result.data["type"] == "STAFF"
    assert not unknown.success and unknown.retry


def test_lockout_persists_across_requests(client, db, organization, auth_headers):
    staff = _staff(db, organization)
    headers = auth_headers(organization, role="nurse")
    body = {"staff_id": str(staff.id), "pin": "0000", "type": "ADMINISTRATION"}

    responses = [
        client.post("/api/verification/pin", json=body, headers=headers).json() for _ in range(3)
    ]

    assert [r["attempts_left"] for r in responses] == [2, 1, 0]
    assert responses[-1]["locked"] is True
    db.refresh(staff)
    assert staff.account_locked


def test_staff_management_requires_manager(client, db, organization, auth_headers):
    staff = _staff(db, organization)

    denied = client.post(f"/api/staff/{staff.id}/unlock", headers=auth_headers(organization, role="nurse"))
    allowed = client.post(f"/api/staff/{staff.id}/temporary-pin", headers=auth_headers(organization))

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["expires_in_hours"] == 24


def test_unknown_staff_is_not_found_over_http(client, organization, auth_headers):
    response = client.post(f"/api/staff/{uuid.uuid4()}/unlock", headers=auth_headers(organization))
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
