"""Selection of region-specific implementations of a feature."""

from __future__ import annotations

from types import MappingProxyType
from typing import Generic, Mapping, TypeVar

from carenotes.core.errors import MissingRegionVariantError
from carenotes.tenancy.regions import Region, region_from_key

T = TypeVar("T")


def select_variant(region_key: str, variants: Mapping[str, T], feature: str = "feature") -> T:
    """Return the variant registered for ``region_key``.

    A missing entry is a configuration error, not an empty render.
    """

    try:
        return variants[region_key]
    except KeyError:
        raise MissingRegionVariantError(feature, [region_key]) from None


class RegionalVariants(Generic[T]):
    """Enum-keyed variant table that must cover every region."""

    def __init__(self, feature: str, variants: Mapping[Region, T]) -> None:
        missing = [region for region in Region if region not in variants]
        if missing:
            raise MissingRegionVariantError(feature, missing)
        self.feature = feature
        self._variants: Mapping[Region, T] = MappingProxyType(dict(variants))

    def select(self, region: Region | str) -> T:
        if not isinstance(region, Region):
            region = region_from_key(region)
        return self._variants[region]

    def __len__(self) -> int:
        return len(self._variants)

    def __repr__(self) -> str:
        return f"RegionalVariants({self.feature!r})"
