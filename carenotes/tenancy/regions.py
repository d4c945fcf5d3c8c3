"""Regions (regulatory jurisdictions) and path-based region resolution."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final

from carenotes.core.errors import UnknownRegionError


class Region(str, enum.Enum):
    """Jurisdictions with their own regulator and UI variants."""

    UK_ENGLAND = "UK_ENGLAND"
    UK_WALES = "UK_WALES"
    UK_SCOTLAND = "UK_SCOTLAND"
    UK_NORTHERN_IRELAND = "UK_NORTHERN_IRELAND"
    IRELAND = "IRELAND"


REGION_KEYS: Final[dict[Region, str]] = {
    Region.UK_ENGLAND: "england",
    Region.UK_WALES: "wales",
    Region.UK_SCOTLAND: "scotland",
    Region.UK_NORTHERN_IRELAND: "northern-ireland",
    Region.IRELAND: "ireland",
}
_REGIONS_BY_KEY: Final[dict[str, Region]] = {key: region for region, key in REGION_KEYS.items()}

DEFAULT_REGION_KEY: Final[str] = REGION_KEYS[Region.UK_ENGLAND]


@dataclass(frozen=True)
class RegulatoryBody:
    code: str
    name: str
    website: str


@dataclass(frozen=True)
class LanguageRequirements:
    primary: str
    supported: tuple[str, ...]
    translation_required: bool


REGULATORS: Final[dict[Region, RegulatoryBody]] = {
    Region.UK_ENGLAND: RegulatoryBody("CQC", "Care Quality Commission", "https://www.cqc.org.uk"),
    Region.UK_WALES: RegulatoryBody(
        "CIW", "Care Inspectorate Wales", "https://www.careinspectorate.wales"
    ),
    Region.UK_SCOTLAND: RegulatoryBody(
        "CI", "Care Inspectorate", "https://www.careinspectorate.com"
    ),
    Region.UK_NORTHERN_IRELAND: RegulatoryBody(
        "RQIA", "Regulation and Quality Improvement Authority", "https://www.rqia.org.uk"
    ),
    Region.IRELAND: RegulatoryBody(
        "HIQA", "Health Information and Quality Authority", "https://www.hiqa.ie"
    ),
}

LANGUAGE_REQUIREMENTS: Final[dict[Region, LanguageRequirements]] = {
    Region.UK_ENGLAND: LanguageRequirements("en", ("en",), False),
    Region.UK_WALES: LanguageRequirements("en", ("en", "cy"), True),
    Region.UK_SCOTLAND: LanguageRequirements("en", ("en", "gd"), False),
    Region.UK_NORTHERN_IRELAND: LanguageRequirements("en", ("en", "ga"), False),
    Region.IRELAND: LanguageRequirements("en", ("en", "ga"), False),
}


def path_segments(path: str) -> list[str]:
    """Split a navigation path into its non-empty segments."""

    bare_path = path.split("?", 1)[0].split("#", 1)[0]
    return [segment for segment in bare_path.split("/") if segment]


def resolve_region_key(path: str, default: str = DEFAULT_REGION_KEY) -> str:
    """Return the first path segment as the region key, or ``default``.

    No check against the known regions happens here; callers that need a
    ``Region`` go through :func:`region_from_key`.
    """

    segments = path_segments(path or "")
    return segments[0] if segments else default


def region_from_key(key: str) -> Region:
    """Map a path key such as ``"wales"`` to its ``Region``."""

    region = _REGIONS_BY_KEY.get(key.strip().lower())
    if region is None:
        raise UnknownRegionError(key)
    return region


def is_region_key(key: str) -> bool:
    return key.strip().lower() in _REGIONS_BY_KEY


def region_key(region: Region) -> str:
    return REGION_KEYS[region]


__all__ = [
    "DEFAULT_REGION_KEY",
    "LANGUAGE_REQUIREMENTS",
    "REGION_KEYS",
    "REGULATORS",
    "LanguageRequirements",
    "Region",
    "RegulatoryBody",
    "is_region_key",
    "path_segments",
    "region_from_key",
    "region_key",
    "resolve_region_key",
]
