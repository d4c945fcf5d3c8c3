"""Error taxonomy shared by the tenancy layer, services and routes."""

from __future__ import annotations

from typing import Any, Iterable


class CareNotesError(Exception):
    """Base class for errors rendered as ``{"error": kind, "detail": ...}``."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra


class ConfigurationError(CareNotesError):
    kind = "configuration_error"


class MissingRegionVariantError(ConfigurationError):
    """A region-keyed variant table has no entry for a region."""

    def __init__(self, feature: str, missing: Iterable[str]) -> None:
        self.feature = feature
        self.missing = tuple(str(getattr(item, "value", item)) for item in missing)
        super().__init__(
            f"No {feature} variant registered for: {', '.join(self.missing)}"
        )


class UnknownRegionError(CareNotesError):
    kind = "unknown_region"
    status_code = 404

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Unknown region '{key}'")


class TenantContextError(CareNotesError):
    """The tenant context could not be built from the session and organization."""

    kind = "tenant_resolution"
    status_code = 403


class SessionRequired(CareNotesError):
    """No usable session; rendered as a redirect to the sign-in page."""

    kind = "authentication_required"
    status_code = 401

    def __init__(self, next_path: str | None = None, reason: str = "no_session") -> None:
        self.next_path = next_path
        self.reason = reason
        super().__init__(f"Authentication required ({reason})")


class PermissionDenied(CareNotesError):
    kind = "permission_denied"
    status_code = 403

    def __init__(self, permission: str) -> None:
        self.permission = permission
        super().__init__(f"Missing permission '{permission}'")


class FeatureDisabled(CareNotesError):
    kind = "feature_disabled"
    status_code = 403

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"Feature '{feature}' is not enabled for this organization")


class NotFoundError(CareNotesError):
    kind = "not_found"
    status_code = 404


__all__ = [
    "CareNotesError",
    "ConfigurationError",
    "FeatureDisabled",
    "MissingRegionVariantError",
    "NotFoundError",
    "PermissionDenied",
    "SessionRequired",
    "TenantContextError",
    "UnknownRegionError",
]
