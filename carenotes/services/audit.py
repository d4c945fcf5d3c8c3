"""Audit trail persistence and queries."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from carenotes.models import AuditLog, AuditLogAction, AuditLogActorType, AuditLogStatus
from carenotes.tenancy.context import TenantContext


def record_audit(
    db: Session,
    *,
    context: TenantContext,
    action: AuditLogAction,
    status: AuditLogStatus,
    entity_type: str,
    entity_id: UUID | str | None = None,
    actor: str | None = None,
    actor_type: AuditLogActorType = AuditLogActorType.USER,
    metadata: dict[str, Any] | None = None,
) -> AuditLog:
    """Persist an audit entry for the tenant's organization."""

    entry = AuditLog(
        organization_id=UUID(context.organization_id),
        actor=actor,
        actor_type=actor_type,
        action=action,
        status=status,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        metadata_json=metadata,
    )
    db.add(entry)
    db.flush()
    return entry


def list_audit_logs(
    db: Session,
    context: TenantContext,
    *,
    action: AuditLogAction | None = None,
    status: AuditLogStatus | None = None,
    actor_type: AuditLogActorType | None = None,
    limit: int = 100,
) -> list[AuditLog]:
    """Return the organization's audit entries, newest first."""

    stmt = select(AuditLog).where(
        AuditLog.organization_id == UUID(context.organization_id)
    )
    if action is not None:
        stmt = stmt.where(AuditLog.action == action)
    if status is not None:
        stmt = stmt.where(AuditLog.status == status)
    if actor_type is not None:
        stmt = stmt.where(AuditLog.actor_type == actor_type)
    stmt = stmt.order_by(AuditLog.occurred_at.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())
