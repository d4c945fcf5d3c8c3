from sqlalchemy import func, select

from carenotes.db.session import SessionLocal
from carenotes.models import Bed, Organization, StaffMember
from carenotes.seed import DEMO_ORGANIZATIONS, seed
from carenotes.tenancy.regions import Region
from carenotes_jobs.celery_app import celery_app
from carenotes_jobs.config import settings as jobs_settings
from carenotes_jobs.tasks import daily_notification_check


def test_seed_creates_one_organization_per_region(db):
    tenant_ids = seed(SessionLocal)

    assert tenant_ids == [tenant_id for tenant_id, _, _ in DEMO_ORGANIZATIONS]
    regions = set(db.execute(select(Organization.region)).scalars())
    assert regions == set(Region)


def test_seed_is_idempotent(db):
    seed(SessionLocal)
    seed(SessionLocal)

    assert db.execute(select(func.count(Organization.id))).scalar_one() == len(Region)
    assert db.execute(select(func.count(Bed.id))).scalar_one() == 5 * len(Region)
    assert db.execute(select(func.count(StaffMember.id))).scalar_one() == 3 * len(Region)


def test_beat_schedule_runs_daily_check():
    entry = celery_app.conf.beat_schedule["daily-notification-check"]
    assert entry["task"] == "jobs.daily_notification_check"
    assert entry["schedule"].hour == {jobs_settings.notification_check_hour}


def test_daily_notification_check_task(db):
    seed(SessionLocal)

    summary = daily_notification_check.run("2026-10-18")

    assert summary["failed"] == 0
    assert summary["sent"] == summary["total"]
