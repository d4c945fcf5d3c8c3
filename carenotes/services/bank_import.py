"""Persistence of imported bank statements."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from carenotes.models import (
    AuditLogAction,
    AuditLogStatus,
    BankImport,
    BankTransaction,
)
from carenotes.schemas import BankImportCreate
from carenotes.services.audit import record_audit
from carenotes.tenancy.context import TenantContext

logger = logging.getLogger(__name__)


def create_bank_import(
    db: Session, context: TenantContext, payload: BankImportCreate, *, imported_by: str
) -> BankImport:
    """Store a validated statement with its transactions and audit the import."""

    organization_id = UUID(context.organization_id)
    bank_import = BankImport(
        organization_id=organization_id,
        account_id=payload.account_id,
        format=payload.format,
        statement_date=payload.statement_date,
        imported_by=imported_by,
        transaction_count=len(payload.transactions),
    )
    bank_import.transactions = [
        BankTransaction(
            organization_id=organization_id,
            position=position,
            transaction_date=item.transaction_date,
            description=item.description,
            amount=item.amount,
            reference=item.reference,
        )
        for position, item in enumerate(payload.transactions)
    ]
    db.add(bank_import)
    db.flush()

    record_audit(
        db,
        context=context,
        action=AuditLogAction.IMPORT,
        status=AuditLogStatus.SUCCESS,
        entity_type="bank_import",
        entity_id=bank_import.id,
        actor=imported_by,
        metadata={
            "account_id": payload.account_id,
            "format": payload.format.value,
            "transaction_count": bank_import.transaction_count,
        },
    )
    logger.info(
        "bank statement imported",
        extra={"bank_import_id": str(bank_import.id), "transactions": bank_import.transaction_count},
    )
    return bank_import
