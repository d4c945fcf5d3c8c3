"""Role to permission table and the feature flag names used across the API."""

from __future__ import annotations

from typing import Final

FEATURE_BED_MANAGEMENT: Final[str] = "bed_management"
FEATURE_ACCOUNTING: Final[str] = "accounting"
FEATURE_MEDICATION: Final[str] = "medication"
FEATURE_AUDIT: Final[str] = "audit"
FEATURE_COMPLIANCE: Final[str] = "compliance"

KNOWN_FEATURES: Final[frozenset[str]] = frozenset(
    {
        FEATURE_BED_MANAGEMENT,
        FEATURE_ACCOUNTING,
        FEATURE_MEDICATION,
        FEATURE_AUDIT,
        FEATURE_COMPLIANCE,
    }
)

_CARE_PERMISSIONS = frozenset(
    {
        "residents:read",
        "beds:read",
        "medication:administer",
        "staff:read",
    }
)
_SENIOR_PERMISSIONS = _CARE_PERMISSIONS | {"compliance:read"}
_MANAGER_PERMISSIONS = _SENIOR_PERMISSIONS | {
    "beds:write",
    "staff:manage",
    "audit:read",
    "accounting:read",
}

ROLE_PERMISSIONS: Final[dict[str, frozenset[str]]] = {
    "admin": _MANAGER_PERMISSIONS | {"accounting:import", "organization:manage"},
    "manager": _MANAGER_PERMISSIONS | {"accounting:import"},
    "nurse": _SENIOR_PERMISSIONS,
    "senior_carer": _SENIOR_PERMISSIONS,
    "carer": _CARE_PERMISSIONS,
    "finance": frozenset({"accounting:read", "accounting:import", "audit:read"}),
}


def permissions_for_role(role: str) -> frozenset[str] | None:
    """Return the permission set for a role, or ``None`` if the role is unknown."""

    return ROLE_PERMISSIONS.get(role.strip().lower())
