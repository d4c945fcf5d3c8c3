"""Service layer for the CareNotes API."""

from carenotes.services.audit import list_audit_logs, record_audit
from carenotes.services.bank_import import create_bank_import
from carenotes.services.bed_dashboards import BED_DASHBOARDS
from carenotes.services.bed_management import (
    QueryResult,
    QueryState,
    fetch_bed_statuses,
    fetch_maintenance,
    fetch_occupancy,
    fetch_overview,
)
from carenotes.services.notification_check import (
    collect_due_notifications,
    run_notification_check,
)
from carenotes.services.notifier import Notice, send_notice
from carenotes.services.organizations import get_organization

__all__ = [
    "BED_DASHBOARDS",
    "Notice",
    "QueryResult",
    "QueryState",
    "collect_due_notifications",
    "create_bank_import",
    "fetch_bed_statuses",
    "fetch_maintenance",
    "fetch_occupancy",
    "fetch_overview",
    "get_organization",
    "list_audit_logs",
    "record_audit",
    "run_notification_check",
    "send_notice",
]
