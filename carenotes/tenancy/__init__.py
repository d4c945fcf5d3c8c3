"""Tenant, region and locale resolution."""

from carenotes.tenancy.context import TenantContext, TenantSettings, build_tenant_context
from carenotes.tenancy.locale import DEFAULT_LOCALE, LocaleConfig, locale_for_region
from carenotes.tenancy.permissions import ROLE_PERMISSIONS, permissions_for_role
from carenotes.tenancy.regions import (
    DEFAULT_REGION_KEY,
    REGULATORS,
    Region,
    region_from_key,
    region_key,
    resolve_region_key,
)
from carenotes.tenancy.variants import RegionalVariants, select_variant

__all__ = [
    "DEFAULT_LOCALE",
    "DEFAULT_REGION_KEY",
    "REGULATORS",
    "ROLE_PERMISSIONS",
    "LocaleConfig",
    "Region",
    "RegionalVariants",
    "TenantContext",
    "TenantSettings",
    "build_tenant_context",
    "locale_for_region",
    "permissions_for_role",
    "region_from_key",
    "region_key",
    "resolve_region_key",
    "select_variant",
]
