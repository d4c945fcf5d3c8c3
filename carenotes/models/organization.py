from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carenotes.models.base import Base, JSONType, TimestampMixin
from carenotes.tenancy.regions import Region


class Organization(Base, TimestampMixin):
    """A care provider using the system; every other row is scoped to one."""

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    region: Mapped[Region] = mapped_column(
        Enum(Region, name="region"), default=Region.UK_ENGLAND, nullable=False
    )
    timezone: Mapped[str] = mapped_column(String(64), default="Europe/London")
    features: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
