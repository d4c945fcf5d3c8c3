"""Bed status, occupancy and maintenance reads for the bed-management views.

Every fetch returns a :class:`QueryResult` so callers decide how an empty or
failed query is presented; database errors never escape as exceptions.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from carenotes.models import Bed, BedMaintenance, BedState, MaintenanceState
from carenotes.schemas import BedOverview, BedStatus, MaintenanceStatus, OccupancyMetrics
from carenotes.tenancy.context import TenantContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryState(str, enum.Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Outcome of a data fetch: data, an explicit empty state, or an error."""

    state: QueryState
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> "QueryResult[T]":
        return cls(QueryState.OK, data=data)

    @classmethod
    def empty(cls, data: T) -> "QueryResult[T]":
        return cls(QueryState.EMPTY, data=data)

    @classmethod
    def failed(cls, error: str) -> "QueryResult[T]":
        return cls(QueryState.ERROR, error=error)

    @property
    def is_error(self) -> bool:
        return self.state is QueryState.ERROR


def _guarded(name: str, fetch: Callable[[], QueryResult[T]]) -> QueryResult[T]:
    try:
        return fetch()
    except SQLAlchemyError:
        logger.exception("bed management query failed", extra={"query": name})
        return QueryResult.failed(f"{name} is temporarily unavailable")


def _organization_id(context: TenantContext) -> UUID:
    return UUID(context.organization_id)


def fetch_bed_statuses(db: Session, context: TenantContext) -> QueryResult[list[BedStatus]]:
    """Return every bed of the organization ordered by bed number."""

    def fetch() -> QueryResult[list[BedStatus]]:
        stmt = (
            select(Bed)
            .where(Bed.organization_id == _organization_id(context))
            .order_by(Bed.number)
        )
        beds = [BedStatus.model_validate(bed) for bed in db.execute(stmt).scalars()]
        return QueryResult.ok(beds) if beds else QueryResult.empty(beds)

    return _guarded("bed status", fetch)


def fetch_occupancy(db: Session, context: TenantContext) -> QueryResult[OccupancyMetrics]:
    """Count beds per state and derive the occupancy rate."""

    def fetch() -> QueryResult[OccupancyMetrics]:
        stmt = (
            select(Bed.status, func.count(Bed.id))
            .where(Bed.organization_id == _organization_id(context))
            .group_by(Bed.status)
        )
        counts = {status: count for status, count in db.execute(stmt).all()}
        metrics = OccupancyMetrics.compute(
            total=sum(counts.values()),
            occupied=counts.get(BedState.OCCUPIED, 0),
            available=counts.get(BedState.AVAILABLE, 0),
            maintenance=counts.get(BedState.MAINTENANCE, 0),
        )
        return QueryResult.ok(metrics) if metrics.total else QueryResult.empty(metrics)

    return _guarded("occupancy metrics", fetch)


def fetch_maintenance(
    db: Session, context: TenantContext, *, include_completed: bool = False
) -> QueryResult[list[MaintenanceStatus]]:
    """Return maintenance jobs, open ones only unless ``include_completed``."""

    def fetch() -> QueryResult[list[MaintenanceStatus]]:
        stmt = select(BedMaintenance).where(
            BedMaintenance.organization_id == _organization_id(context)
        )
        if not include_completed:
            stmt = stmt.where(BedMaintenance.status != MaintenanceState.COMPLETED)
        stmt = stmt.order_by(BedMaintenance.start_date)
        jobs = [MaintenanceStatus.model_validate(job) for job in db.execute(stmt).scalars()]
        return QueryResult.ok(jobs) if jobs else QueryResult.empty(jobs)

    return _guarded("maintenance status", fetch)


def fetch_overview(db: Session, context: TenantContext) -> QueryResult[BedOverview]:
    """Combine status, metrics and open maintenance into one view."""

    beds = fetch_bed_statuses(db, context)
    metrics = fetch_occupancy(db, context)
    maintenance = fetch_maintenance(db, context)
    for part in (beds, metrics, maintenance):
        if part.is_error:
            return QueryResult.failed(part.error or "bed overview is unavailable")

    overview = BedOverview(beds=beds.data, metrics=metrics.data, maintenance=maintenance.data)
    if beds.state is QueryState.EMPTY:
        return QueryResult.empty(overview)
    return QueryResult.ok(overview)


__all__ = [
    "QueryResult",
    "QueryState",
    "fetch_bed_statuses",
    "fetch_maintenance",
    "fetch_occupancy",
    "fetch_overview",
]
