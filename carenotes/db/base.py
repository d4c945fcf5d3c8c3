"""Import SQLAlchemy models for Alembic's autogenerate feature."""

from carenotes.models.base import Base
from carenotes.models import (  # noqa: F401
    AuditLog,
    BankImport,
    BankTransaction,
    Bed,
    BedMaintenance,
    Organization,
    Resident,
    StaffMember,
)

__all__ = [
    "Base",
    "AuditLog",
    "BankImport",
    "BankTransaction",
    "Bed",
    "BedMaintenance",
    "Organization",
    "Resident",
    "StaffMember",
]
