"""Per-request tenant context: organization, region, features and permissions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal, Mapping, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from carenotes.core.errors import FeatureDisabled, PermissionDenied, TenantContextError
from carenotes.tenancy.locale import LocaleConfig, locale_for_region
from carenotes.tenancy.permissions import permissions_for_role
from carenotes.tenancy.regions import Region, region_key

if TYPE_CHECKING:  # pragma: no cover
    from carenotes.auth.sessions import AuthSession

logger = logging.getLogger(__name__)


class TenantSettings(BaseModel):
    """Recognized per-organization options; anything else is kept in ``extra``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    language: str | None = None
    currency: str | None = None
    date_format: str = "dd/MM/yyyy"
    measurement_system: Literal["metric", "imperial"] = "metric"
    welsh_language_active_offer: bool = False
    occupancy_alert_threshold: float = Field(default=0.95, ge=0.0, le=1.0)
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "TenantSettings":
        """Split a stored settings mapping into typed options and opaque extras."""

        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in (raw or {}).items():
            if key == "extra" and isinstance(value, Mapping):
                extra.update(value)
            elif key in cls.model_fields:
                known[key] = value
            else:
                extra[key] = value
        return cls(**known, extra=extra)


class TenantContext(BaseModel):
    """Immutable view of who the caller acts for, built once per request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    organization_id: str = Field(min_length=1)
    tenant_id: str = Field(min_length=1)
    region: Region
    timezone: str
    features: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()
    settings: TenantSettings = Field(default_factory=TenantSettings)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone '{value}'") from exc
        return value

    @property
    def region_key(self) -> str:
        return region_key(self.region)

    @property
    def locale(self) -> LocaleConfig:
        base = locale_for_region(self.region)
        return base.model_copy(
            update={
                "language": self.settings.language or base.language,
                "currency": self.settings.currency or base.currency,
                "timezone": self.timezone,
            }
        )

    def has_feature(self, feature: str) -> bool:
        return feature in self.features

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions

    def require_feature(self, feature: str) -> None:
        if not self.has_feature(feature):
            raise FeatureDisabled(feature)

    def require_permission(self, permission: str) -> None:
        if not self.has_permission(permission):
            raise PermissionDenied(permission)


class OrganizationLike(Protocol):
    id: Any
    tenant_id: str
    region: Any
    timezone: str
    features: Any
    settings: Any
    is_active: bool


def build_tenant_context(
    session: "AuthSession", organization: OrganizationLike | None
) -> TenantContext:
    """Build the tenant context for an authenticated session.

    Every field must resolve; a partially populated context is never returned
    because downstream permission checks trust ``permissions`` and
    ``features`` to be complete.
    """

    if not session.organization_id:
        raise TenantContextError("Session is not bound to an organization")
    if organization is None:
        raise TenantContextError("Organization not found")
    if str(organization.id) != str(session.organization_id):
        raise TenantContextError("Session organization does not match the organization")
    if not organization.is_active:
        raise TenantContextError("Organization is inactive")

    permissions = permissions_for_role(session.role)
    if permissions is None:
        raise TenantContextError(f"Unknown role '{session.role}'")

    try:
        return TenantContext(
            organization_id=str(organization.id),
            tenant_id=organization.tenant_id,
            region=organization.region,
            timezone=organization.timezone,
            features=frozenset(organization.features or ()),
            permissions=permissions,
            settings=TenantSettings.from_mapping(organization.settings),
        )
    except ValidationError as exc:
        logger.warning(
            "tenant context rejected",
            extra={"organization_id": str(organization.id), "errors": exc.errors()},
        )
        raise TenantContextError("Organization record is incomplete or invalid") from exc


__all__ = [
    "OrganizationLike",
    "TenantContext",
    "TenantSettings",
    "build_tenant_context",
]
