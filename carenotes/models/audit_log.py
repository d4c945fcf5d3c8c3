from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carenotes.models.base import Base, JSONType, TimestampMixin, utcnow


class AuditLogAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"


class AuditLogStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class AuditLogActorType(str, enum.Enum):
    USER = "USER"
    SYSTEM = "SYSTEM"
    API = "API"
    INTEGRATION = "INTEGRATION"


class AuditLog(Base, TimestampMixin):
    """Audit trail entry scoped per organization."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    actor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_type: Mapped[AuditLogActorType] = mapped_column(
        Enum(AuditLogActorType, name="audit_actor_type"), nullable=False
    )
    action: Mapped[AuditLogAction] = mapped_column(
        Enum(AuditLogAction, name="audit_action"), nullable=False
    )
    status: Mapped[AuditLogStatus] = mapped_column(
        Enum(AuditLogStatus, name="audit_status"), nullable=False
    )
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONType, nullable=True
    )
