"""SQLAlchemy models for the CareNotes API."""

from carenotes.models.audit_log import (
    AuditLog,
    AuditLogAction,
    AuditLogActorType,
    AuditLogStatus,
)
from carenotes.models.bank_import import BankImport, BankTransaction, ImportFormat
from carenotes.models.bed import Bed, BedMaintenance, BedState, MaintenanceState
from carenotes.models.organization import Organization
from carenotes.models.resident import Resident
from carenotes.models.staff import StaffMember, StaffRole

__all__ = [
    "AuditLog",
    "AuditLogAction",
    "AuditLogActorType",
    "AuditLogStatus",
    "BankImport",
    "BankTransaction",
    "Bed",
    "BedMaintenance",
    "BedState",
    "ImportFormat",
    "MaintenanceState",
    "Organization",
    "Resident",
    "StaffMember",
    "StaffRole",
]
