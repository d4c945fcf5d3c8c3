"""Main navigation table, active-item matching and capability filtering.

Items are matched in declaration order and the first match wins, so more
specific patterns must be declared before broader ones.  Patterns are matched
against the path with any leading region key removed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from carenotes.tenancy.context import TenantContext
from carenotes.tenancy.permissions import (
    FEATURE_ACCOUNTING,
    FEATURE_AUDIT,
    FEATURE_BED_MANAGEMENT,
    FEATURE_COMPLIANCE,
    FEATURE_MEDICATION,
)
from carenotes.tenancy.regions import is_region_key, path_segments


@dataclass(frozen=True)
class SubNavItem:
    name: str
    href: str
    pattern: re.Pattern[str]
    feature: str | None = None
    permission: str | None = None


@dataclass(frozen=True)
class NavItem:
    name: str
    href: str
    pattern: re.Pattern[str]
    icon: str | None = None
    feature: str | None = None
    permission: str | None = None
    sub_items: tuple[SubNavItem, ...] = field(default_factory=tuple)


def _p(expr: str) -> re.Pattern[str]:
    return re.compile(expr)


NAVIGATION: tuple[NavItem, ...] = (
    NavItem("Dashboard", "/dashboard", _p(r"^/dashboard(/|$)"), icon="home"),
    NavItem(
        "Residents",
        "/residents",
        _p(r"^/residents(/|$)"),
        icon="users",
        permission="residents:read",
        sub_items=(
            SubNavItem("Admissions", "/residents/admissions", _p(r"^/residents/admissions(/|$)")),
            SubNavItem("All residents", "/residents", _p(r"^/residents(/|$)")),
        ),
    ),
    NavItem(
        "Bed Management",
        "/bed-management",
        _p(r"^/bed-management(/|$)"),
        icon="bed",
        feature=FEATURE_BED_MANAGEMENT,
        permission="beds:read",
        sub_items=(
            SubNavItem(
                "Maintenance",
                "/bed-management/maintenance",
                _p(r"^/bed-management/maintenance(/|$)"),
            ),
            SubNavItem(
                "Allocation",
                "/bed-management/allocation",
                _p(r"^/bed-management/allocation(/|$)"),
                permission="beds:write",
            ),
            SubNavItem("Overview", "/bed-management", _p(r"^/bed-management(/|$)")),
        ),
    ),
    NavItem(
        "Medication",
        "/medication",
        _p(r"^/medication(/|$)"),
        icon="pill",
        feature=FEATURE_MEDICATION,
        permission="medication:administer",
    ),
    NavItem(
        "Staff",
        "/staff",
        _p(r"^/staff(/|$)"),
        icon="id-card",
        permission="staff:read",
        sub_items=(
            SubNavItem(
                "PIN management",
                "/staff/pins",
                _p(r"^/staff/pins(/|$)"),
                permission="staff:manage",
            ),
            SubNavItem("Directory", "/staff", _p(r"^/staff(/|$)")),
        ),
    ),
    NavItem(
        "Accounting",
        "/accounting",
        _p(r"^/accounting(/|$)"),
        icon="pound",
        feature=FEATURE_ACCOUNTING,
        permission="accounting:read",
        sub_items=(
            SubNavItem(
                "Bank import",
                "/accounting/bank-import",
                _p(r"^/accounting/bank-import(/|$)"),
                permission="accounting:import",
            ),
            SubNavItem("Ledger", "/accounting", _p(r"^/accounting(/|$)")),
        ),
    ),
    NavItem(
        "Compliance",
        "/compliance",
        _p(r"^/compliance(/|$)"),
        icon="shield",
        feature=FEATURE_COMPLIANCE,
        permission="compliance:read",
    ),
    NavItem(
        "Audit",
        "/audit",
        _p(r"^/audit(/|$)"),
        icon="list",
        feature=FEATURE_AUDIT,
        permission="audit:read",
    ),
)


def strip_region(path: str) -> str:
    """Return ``path`` relative to its region prefix, always starting with ``/``."""

    segments = path_segments(path)
    if segments and is_region_key(segments[0]):
        segments = segments[1:]
    return "/" + "/".join(segments)


def match_navigation(
    path: str, items: Iterable[NavItem] = NAVIGATION
) -> tuple[NavItem | None, SubNavItem | None]:
    """Return the first item and sub-item whose pattern matches ``path``."""

    relative = strip_region(path)
    for item in items:
        if not item.pattern.search(relative):
            continue
        sub = next((s for s in item.sub_items if s.pattern.search(relative)), None)
        return item, sub
    return None, None


def _allowed(context: TenantContext, feature: str | None, permission: str | None) -> bool:
    if feature is not None and not context.has_feature(feature):
        return False
    if permission is not None and not context.has_permission(permission):
        return False
    return True


def visible_navigation(
    context: TenantContext, items: Iterable[NavItem] = NAVIGATION
) -> list[NavItem]:
    """Items the tenant may see, with sub-items filtered the same way."""

    visible = []
    for item in items:
        if not _allowed(context, item.feature, item.permission):
            continue
        subs = tuple(s for s in item.sub_items if _allowed(context, s.feature, s.permission))
        visible.append(
            NavItem(
                name=item.name,
                href=item.href,
                pattern=item.pattern,
                icon=item.icon,
                feature=item.feature,
                permission=item.permission,
                sub_items=subs,
            )
        )
    return visible


def build_navigation(context: TenantContext, path: str) -> list[dict[str, Any]]:
    """Render the visible navigation with region-prefixed links and active flags."""

    items = visible_navigation(context)
    active_item, active_sub = match_navigation(path, items)
    prefix = f"/{context.region_key}"
    return [
        {
            "name": item.name,
            "href": prefix + item.href,
            "icon": item.icon,
            "active": active_item is not None and item.name == active_item.name,
            "sub_items": [
                {
                    "name": sub.name,
                    "href": prefix + sub.href,
                    "active": active_sub is not None
                    and item.name == active_item.name
                    and sub.name == active_sub.name,
                }
                for sub in item.sub_items
            ],
        }
        for item in items
    ]


__all__ = [
    "NAVIGATION",
    "NavItem",
    "SubNavItem",
    "build_navigation",
    "match_navigation",
    "strip_region",
    "visible_navigation",
]
