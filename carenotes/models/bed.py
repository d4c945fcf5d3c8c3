from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carenotes.models.base import Base, TimestampMixin, utcnow


class BedState(str, enum.Enum):
    """Occupancy state of a bed."""

    OCCUPIED = "occupied"
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"


class MaintenanceState(str, enum.Enum):
    """Lifecycle of a maintenance job on a bed."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Bed(Base, TimestampMixin):
    """A registered bed in a care home."""

    __tablename__ = "beds"
    __table_args__ = (UniqueConstraint("organization_id", "number", name="uq_beds_organization_number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    number: Mapped[str] = mapped_column(String(32), nullable=False)
    ward: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[BedState] = mapped_column(
        Enum(BedState, name="bed_state"), default=BedState.AVAILABLE, nullable=False
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class BedMaintenance(Base, TimestampMixin):
    """Maintenance job taking a bed out of use."""

    __tablename__ = "bed_maintenance"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    bed_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("beds.id", ondelete="CASCADE"), index=True
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[MaintenanceState] = mapped_column(
        Enum(MaintenanceState, name="maintenance_state"),
        default=MaintenanceState.PENDING,
        nullable=False,
    )
