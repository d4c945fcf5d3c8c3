from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from carenotes.tenancy.regions import Region


class LocaleConfig(BaseModel):
    """Language, region, currency and timezone preference for a UI session."""

    model_config = ConfigDict(frozen=True)

    language: str = Field(min_length=1)
    region: str = Field(min_length=1)
    currency: str = Field(min_length=1)
    timezone: str = Field(min_length=1)


DEFAULT_LOCALE: Final[LocaleConfig] = LocaleConfig(
    language="en-GB",
    region=Region.UK_ENGLAND.value,
    currency="GBP",
    timezone="Europe/London",
)

REGION_LOCALES: Final[dict[Region, LocaleConfig]] = {
    Region.UK_ENGLAND: DEFAULT_LOCALE,
    Region.UK_WALES: DEFAULT_LOCALE.model_copy(update={"region": Region.UK_WALES.value}),
    Region.UK_SCOTLAND: DEFAULT_LOCALE.model_copy(update={"region": Region.UK_SCOTLAND.value}),
    Region.UK_NORTHERN_IRELAND: DEFAULT_LOCALE.model_copy(
        update={"region": Region.UK_NORTHERN_IRELAND.value}
    ),
    Region.IRELAND: LocaleConfig(
        language="en-IE",
        region=Region.IRELAND.value,
        currency="EUR",
        timezone="Europe/Dublin",
    ),
}


def locale_for_region(region: Region) -> LocaleConfig:
    """Return the baseline locale for a region."""

    return REGION_LOCALES[region]


__all__ = ["DEFAULT_LOCALE", "REGION_LOCALES", "LocaleConfig", "locale_for_region"]
