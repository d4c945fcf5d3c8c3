"""Staff PIN, witness and barcode verification for medication rounds."""

from __future__ import annotations

import logging
import re
import secrets
from datetime import timedelta
from uuid import UUID

import bcrypt
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from carenotes.core.config import settings
from carenotes.core.errors import NotFoundError
from carenotes.models import (
    AuditLogAction,
    AuditLogStatus,
    Resident,
    StaffMember,
    StaffRole,
)
from carenotes.models.base import ensure_utc, utcnow
from carenotes.schemas import (
    BarcodeData,
    BarcodeType,
    PINVerification,
    VerificationResult,
    VerificationType,
    WitnessVerification,
)
from carenotes.services.audit import record_audit
from carenotes.tenancy.context import TenantContext

logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 3
PIN_EXPIRY_DAYS = 90
TEMPORARY_PIN_DAYS = 1

_PIN_FORMAT = re.compile(r"^\d{4}$")
_REPEATED_DIGIT = re.compile(r"(\d)\1{3}")

ROLE_VERIFICATIONS: dict[StaffRole, frozenset[VerificationType]] = {
    StaffRole.MANAGER: frozenset(VerificationType),
    StaffRole.NURSE: frozenset(VerificationType),
    StaffRole.SENIOR_CARER: frozenset(VerificationType),
    StaffRole.CARER: frozenset({VerificationType.WITNESS, VerificationType.ADMINISTRATION}),
}

_ACTION_LABELS = {
    VerificationType.CONTROLLED_DRUG: "handle controlled drugs",
    VerificationType.WITNESS: "act as a witness",
    VerificationType.ADMINISTRATION: "give medications",
}


def hash_pin(pin: str) -> str:
    return bcrypt.hashpw(pin.encode(), bcrypt.gensalt(rounds=settings.pin_hash_rounds)).decode()


def pin_matches(pin: str, pin_hash: str | None) -> bool:
    if not pin_hash:
        return False
    try:
        return bcrypt.checkpw(pin.encode(), pin_hash.encode())
    except ValueError:
        logger.warning("stored PIN hash is malformed")
        return False


def is_valid_pin_format(pin: str) -> bool:
    return bool(_PIN_FORMAT.match(pin))


def is_acceptable_new_pin(pin: str) -> bool:
    """A new PIN must be four digits and not the same digit repeated."""

    return is_valid_pin_format(pin) and not _REPEATED_DIGIT.search(pin)


def role_allows(role: StaffRole, verification_type: VerificationType) -> bool:
    return verification_type in ROLE_VERIFICATIONS.get(role, frozenset())


def _staff_query(context: TenantContext, staff_id: UUID, *, lock: bool = False) -> Select:
    stmt = select(StaffMember).where(
        StaffMember.id == staff_id,
        StaffMember.organization_id == UUID(context.organization_id),
    )
    if lock:
        # Held until commit so concurrent checks see each other's failures.
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return stmt


def _find_staff(
    db: Session, context: TenantContext, staff_id: UUID, *, lock: bool = False
) -> StaffMember | None:
    return db.execute(_staff_query(context, staff_id, lock=lock)).scalar_one_or_none()


def _require_staff(db: Session, context: TenantContext, staff_id: UUID) -> StaffMember:
    staff = _find_staff(db, context, staff_id)
    if staff is None:
        raise NotFoundError(f"Staff member {staff_id} not found")
    return staff


def verify_barcode(db: Session, context: TenantContext, code: str) -> VerificationResult:
    """Resolve a scanned code to a resident or staff member of the organization."""

    organization_id = UUID(context.organization_id)
    resident = db.execute(
        select(Resident).where(Resident.barcode == code, Resident.organization_id == organization_id)
    ).scalar_one_or_none()
    if resident is not None:
        data = BarcodeData(
            code=code,
            type=BarcodeType.RESIDENT,
            entity_id=resident.id,
            display_name=resident.full_name,
        )
        return VerificationResult(success=True, data=data.model_dump(mode="json"))

    staff = db.execute(
        select(StaffMember).where(
            StaffMember.barcode == code, StaffMember.organization_id == organization_id
        )
    ).scalar_one_or_none()
    if staff is not None:
        data = BarcodeData(
            code=code,
            type=BarcodeType.STAFF,
            entity_id=staff.id,
            display_name=staff.full_name,
        )
        return VerificationResult(success=True, data=data.model_dump(mode="json"))

    return VerificationResult(
        success=False,
        message="Please scan again or enter the code manually",
        retry=True,
    )


def _audit_pin_check(
    db: Session,
    context: TenantContext,
    verification: PINVerification,
    result: VerificationResult,
    actor: str | None,
) -> None:
    record_audit(
        db,
        context=context,
        action=AuditLogAction.VIEW,
        status=AuditLogStatus.SUCCESS if result.success else AuditLogStatus.FAILURE,
        entity_type="staff_pin_verification",
        entity_id=verification.staff_id,
        actor=actor,
        metadata={
            "type": verification.type.value,
            "locked": result.locked,
            "attempts_left": result.attempts_left,
        },
    )


def verify_pin(
    db: Session,
    context: TenantContext,
    verification: PINVerification,
    *,
    actor: str | None = None,
) -> VerificationResult:
    """Check a staff PIN and whether the staff member may perform the action.

    Three consecutive wrong PINs lock the account until a manager unlocks it.
    """

    result = _check_pin(db, context, verification)
    _audit_pin_check(db, context, verification, result, actor)
    return result


def _check_pin(
    db: Session, context: TenantContext, verification: PINVerification
) -> VerificationResult:
    if not is_valid_pin_format(verification.pin):
        return VerificationResult(
            success=False,
            message="Your PIN should be 4 numbers only",
            hint="For example: 1234",
            retry=True,
        )

    staff = _find_staff(db, context, verification.staff_id, lock=True)
    if staff is None:
        return VerificationResult(
            success=False,
            message="Staff ID not found",
            hint="Please try scanning your ID card again",
            retry=True,
        )

    if staff.account_locked:
        return VerificationResult(
            success=False,
            message="Your account is locked for security",
            hint="Please ask your manager to unlock it",
            locked=True,
            requires_manager=True,
        )

    if not pin_matches(verification.pin, staff.pin_hash):
        staff.failed_attempts = (staff.failed_attempts or 0) + 1
        attempts_left = max(MAX_FAILED_ATTEMPTS - staff.failed_attempts, 0)
        staff.account_locked = staff.failed_attempts >= MAX_FAILED_ATTEMPTS
        db.flush()
        if staff.account_locked:
            logger.warning("staff account locked", extra={"staff_id": str(staff.id)})
            return VerificationResult(
                success=False,
                message="Your account has been locked for security",
                hint="Please ask your manager to unlock it",
                locked=True,
                requires_manager=True,
                attempts_left=0,
            )
        return VerificationResult(
            success=False,
            message="Wrong PIN entered",
            hint=(
                f"You have {attempts_left} more tries"
                if attempts_left > 1
                else "Last try before your account is locked"
            ),
            retry=True,
            attempts_left=attempts_left,
        )

    if staff.failed_attempts:
        staff.failed_attempts = 0
        db.flush()

    if staff.temporary_pin:
        return VerificationResult(
            success=False,
            message="You need to set up your own PIN",
            hint="Choose 4 numbers you can remember easily",
            requires_change=True,
        )

    if staff.pin_expires_at is not None and ensure_utc(staff.pin_expires_at) <= utcnow():
        return VerificationResult(
            success=False,
            message="Time to change your PIN",
            hint="This helps keep everything secure",
            expired=True,
            requires_change=True,
        )

    if not role_allows(staff.role, verification.type):
        return VerificationResult(
            success=False,
            message=f"You don't have permission to {_ACTION_LABELS[verification.type]}",
            hint="Please ask a qualified colleague to help",
            requires_escalation=True,
        )

    return VerificationResult(
        success=True,
        message=f"Welcome back {staff.first_name}",
        data={"staff_id": str(staff.id), "staff_name": staff.full_name, "role": staff.role.value},
    )


def verify_witness(
    db: Session,
    context: TenantContext,
    verification: WitnessVerification,
    *,
    actor: str | None = None,
) -> VerificationResult:
    """Confirm a second staff member witnesses an administration."""

    if verification.witness_id == verification.administrator_id:
        return VerificationResult(
            success=False,
            message="You need a different person to witness",
            hint="Ask another qualified colleague to help",
            retry=True,
        )

    result = verify_pin(
        db,
        context,
        PINVerification(
            staff_id=verification.witness_id,
            pin=verification.witness_pin,
            type=VerificationType.WITNESS,
        ),
        actor=actor,
    )
    if not result.success:
        return result

    data = dict(result.data or {})
    data["administrator_id"] = str(verification.administrator_id)
    data["verification_type"] = verification.type.value
    return VerificationResult(success=True, message="Witness confirmed", data=data)


def issue_temporary_pin(
    db: Session, context: TenantContext, staff_id: UUID, *, actor: str | None = None
) -> str:
    """Reset a staff member's PIN to a random one-day temporary PIN and return it."""

    staff = _require_staff(db, context, staff_id)
    pin = f"{secrets.randbelow(9000) + 1000}"
    staff.pin_hash = hash_pin(pin)
    staff.temporary_pin = True
    staff.pin_expires_at = utcnow() + timedelta(days=TEMPORARY_PIN_DAYS)
    staff.failed_attempts = 0
    staff.account_locked = False
    db.flush()
    record_audit(
        db,
        context=context,
        action=AuditLogAction.UPDATE,
        status=AuditLogStatus.SUCCESS,
        entity_type="staff_pin",
        entity_id=staff.id,
        actor=actor,
        metadata={"temporary": True},
    )
    return pin


def update_pin(
    db: Session,
    context: TenantContext,
    staff_id: UUID,
    new_pin: str,
    *,
    actor: str | None = None,
) -> VerificationResult:
    staff = _require_staff(db, context, staff_id)
    if not is_acceptable_new_pin(new_pin):
        return VerificationResult(
            success=False,
            message="PIN does not meet complexity requirements",
            hint="Use 4 numbers that are not all the same",
            retry=True,
        )

    staff.pin_hash = hash_pin(new_pin)
    staff.temporary_pin = False
    staff.pin_expires_at = utcnow() + timedelta(days=PIN_EXPIRY_DAYS)
    staff.failed_attempts = 0
    staff.account_locked = False
    db.flush()
    record_audit(
        db,
        context=context,
        action=AuditLogAction.UPDATE,
        status=AuditLogStatus.SUCCESS,
        entity_type="staff_pin",
        entity_id=staff.id,
        actor=actor,
    )
    return VerificationResult(success=True, message="PIN updated successfully")


def unlock_staff(
    db: Session, context: TenantContext, staff_id: UUID, *, actor: str | None = None
) -> StaffMember:
    staff = _require_staff(db, context, staff_id)
    staff.failed_attempts = 0
    staff.account_locked = False
    db.flush()
    record_audit(
        db,
        context=context,
        action=AuditLogAction.UPDATE,
        status=AuditLogStatus.SUCCESS,
        entity_type="staff_account",
        entity_id=staff.id,
        actor=actor,
        metadata={"unlocked": True},
    )
    logger.info("staff account unlocked", extra={"staff_id": str(staff.id)})
    return staff


__all__ = [
    "MAX_FAILED_ATTEMPTS",
    "PIN_EXPIRY_DAYS",
    "hash_pin",
    "is_acceptable_new_pin",
    "is_valid_pin_format",
    "issue_temporary_pin",
    "pin_matches",
    "role_allows",
    "unlock_staff",
    "update_pin",
    "verify_barcode",
    "verify_pin",
    "verify_witness",
]
