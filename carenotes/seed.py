from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from carenotes.db.session import SessionLocal
from carenotes.logging_utils import configure_logging, set_region_context, set_tenant_context
from carenotes.models import (
    Bed,
    BedMaintenance,
    BedState,
    MaintenanceState,
    Organization,
    Resident,
    StaffMember,
    StaffRole,
)
from carenotes.models.base import utcnow
from carenotes.services.verification import PIN_EXPIRY_DAYS, hash_pin
from carenotes.tenancy.locale import locale_for_region
from carenotes.tenancy.permissions import KNOWN_FEATURES
from carenotes.tenancy.regions import Region, region_key

logger = logging.getLogger(__name__)

DEMO_ORGANIZATIONS: list[tuple[str, str, Region]] = [
    ("demo-england", "Meadowbank Care Home", Region.UK_ENGLAND),
    ("demo-wales", "Cartref Glan-yr-Afon", Region.UK_WALES),
    ("demo-scotland", "Loch View Nursing Home", Region.UK_SCOTLAND),
    ("demo-northern-ireland", "Lagan House", Region.UK_NORTHERN_IRELAND),
    ("demo-ireland", "Liffey Lodge Nursing Home", Region.IRELAND),
]

BED_LAYOUT: list[tuple[str, str, BedState]] = [
    ("101", "Rowan", BedState.OCCUPIED),
    ("102", "Rowan", BedState.OCCUPIED),
    ("103", "Rowan", BedState.AVAILABLE),
    ("201", "Willow", BedState.OCCUPIED),
    ("202", "Willow", BedState.MAINTENANCE),
]

STAFF: list[tuple[str, str, StaffRole]] = [
    ("Alex", "Morgan", StaffRole.MANAGER),
    ("Sam", "Okafor", StaffRole.NURSE),
    ("Jordan", "Price", StaffRole.CARER),
]

RESIDENTS: list[tuple[str, str, str]] = [
    ("Edith", "Walsh", "101"),
    ("Harold", "Byrne", "102"),
    ("Margaret", "Hughes", "201"),
]

DEMO_PIN = "2468"


def ensure_organization(session: Session, tenant_id: str, name: str, region: Region) -> Organization:
    organization = session.execute(
        select(Organization).where(Organization.tenant_id == tenant_id)
    ).scalar_one_or_none()
    if organization:
        logger.info("organization already present", extra={"tenant_id": tenant_id})
        return organization

    settings: dict = {}
    if region is Region.UK_WALES:
        settings["welsh_language_active_offer"] = True
    organization = Organization(
        tenant_id=tenant_id,
        name=name,
        region=region,
        timezone=locale_for_region(region).timezone,
        features=sorted(KNOWN_FEATURES),
        settings=settings,
    )
    session.add(organization)
    session.flush()
    logger.info("created organization", extra={"tenant_id": tenant_id, "region": region_key(region)})
    return organization


def ensure_beds(session: Session, organization: Organization) -> dict[str, Bed]:
    created = 0
    beds: dict[str, Bed] = {}
    for number, ward, state in BED_LAYOUT:
        bed = session.execute(
            select(Bed).where(Bed.organization_id == organization.id, Bed.number == number)
        ).scalar_one_or_none()
        if not bed:
            bed = Bed(organization_id=organization.id, number=number, ward=ward, status=state)
            session.add(bed)
            session.flush()
            created += 1
        beds[number] = bed

    maintenance_bed = beds["202"]
    has_job = session.execute(
        select(BedMaintenance.id).where(BedMaintenance.bed_id == maintenance_bed.id)
    ).first()
    if not has_job:
        today = date.today()
        session.add(
            BedMaintenance(
                organization_id=organization.id,
                bed_id=maintenance_bed.id,
                type="mattress replacement",
                start_date=today - timedelta(days=2),
                expected_end_date=today + timedelta(days=3),
                status=MaintenanceState.IN_PROGRESS,
            )
        )

    logger.info(
        "ensured beds",
        extra={"tenant_id": organization.tenant_id, "created": created, "total": len(beds)},
    )
    return beds


def ensure_staff(session: Session, organization: Organization) -> None:
    created = 0
    for index, (first_name, last_name, role) in enumerate(STAFF, start=1):
        barcode = f"STF-{organization.tenant_id}-{index:03d}"
        exists = session.execute(
            select(StaffMember.id).where(StaffMember.barcode == barcode)
        ).first()
        if exists:
            continue
        session.add(
            StaffMember(
                organization_id=organization.id,
                first_name=first_name,
                last_name=last_name,
                role=role,
                barcode=barcode,
                pin_hash=hash_pin(DEMO_PIN),
                pin_expires_at=utcnow() + timedelta(days=PIN_EXPIRY_DAYS),
            )
        )
        created += 1

    logger.info("ensured staff", extra={"tenant_id": organization.tenant_id, "created": created})


def ensure_residents(session: Session, organization: Organization, beds: dict[str, Bed]) -> None:
    created = 0
    for index, (first_name, last_name, bed_number) in enumerate(RESIDENTS, start=1):
        barcode = f"RES-{organization.tenant_id}-{index:03d}"
        exists = session.execute(
            select(Resident.id).where(Resident.barcode == barcode)
        ).first()
        if exists:
            continue
        session.add(
            Resident(
                organization_id=organization.id,
                first_name=first_name,
                last_name=last_name,
                barcode=barcode,
                bed_id=beds[bed_number].id,
            )
        )
        created += 1

    logger.info("ensured residents", extra={"tenant_id": organization.tenant_id, "created": created})


def seed(session_factory: Callable[[], Session] = SessionLocal) -> list[str]:
    """Create one demo organization per region; safe to run repeatedly."""

    configure_logging()
    logger.info("starting seed process")

    session = session_factory()
    tenant_ids: list[str] = []
    try:
        for tenant_id, name, region in DEMO_ORGANIZATIONS:
            set_tenant_context(tenant_id)
            set_region_context(region_key(region))
            organization = ensure_organization(session, tenant_id, name, region)
            beds = ensure_beds(session, organization)
            ensure_staff(session, organization)
            ensure_residents(session, organization, beds)
            tenant_ids.append(tenant_id)
        session.commit()
        logger.info("seed complete", extra={"organizations": len(tenant_ids)})
    except Exception:
        session.rollback()
        logger.exception("seed failed")
        raise
    finally:
        session.close()
        set_tenant_context(None)
        set_region_context(None)
    return tenant_ids


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    seed()
