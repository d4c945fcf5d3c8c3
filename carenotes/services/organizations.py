"""Organization lookups used during tenant resolution."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from carenotes.models import Organization


def get_organization(db: Session, organization_id: UUID | str | None) -> Organization | None:
    """Return the organization for ``organization_id`` or ``None``."""

    if not organization_id:
        return None
    if not isinstance(organization_id, UUID):
        try:
            organization_id = UUID(str(organization_id))
        except ValueError:
            return None
    return db.get(Organization, organization_id)
