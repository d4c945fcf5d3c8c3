import pytest

from carenotes.core.errors import UnknownRegionError
from carenotes.tenancy.locale import DEFAULT_LOCALE, locale_for_region
from carenotes.tenancy.regions import (
    DEFAULT_REGION_KEY,
    LANGUAGE_REQUIREMENTS,
    REGION_KEYS,
    REGULATORS,
    Region,
    is_region_key,
    region_from_key,
    resolve_region_key,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/wales/dashboard", "wales"),
        ("/scotland", "scotland"),
        ("//northern-ireland//bed-management", "northern-ireland"),
        ("/ireland?tab=beds", "ireland"),
        ("/england#top", "england"),
        ("/", "england"),
        ("", "england"),
        ("/mars/dashboard", "mars"),
    ],
)
def test_resolve_region_key(path, expected):
    assert resolve_region_key(path) == expected


def test_resolve_region_key_custom_default():
    assert resolve_region_key("/", default="wales") == "wales"


def test_default_region_key_is_england():
    assert DEFAULT_REGION_KEY == "england"


def test_region_from_key_is_case_insensitive():
    assert region_from_key("Wales") is Region.UK_WALES
    assert region_from_key("northern-ireland") is Region.UK_NORTHERN_IRELAND


def test_region_from_unknown_key_raises():
    with pytest.raises(UnknownRegionError) as excinfo:
        region_from_key("mars")
    assert excinfo.value.status_code == 404
    assert excinfo.value.kind == "unknown_region"
    assert not is_region_key("mars")


def test_every_region_is_fully_described():
    for region in Region:
        assert region_from_key(REGION_KEYS[region]) is region
        assert region in REGULATORS
        assert region in LANGUAGE_REQUIREMENTS
        assert locale_for_region(region).region == region.value


def test_regulators():
    assert REGULATORS[Region.UK_ENGLAND].code == "CQC"
    assert REGULATORS[Region.UK_WALES].code == "CIW"
    assert REGULATORS[Region.IRELAND].code == "HIQA"


def test_wales_requires_welsh_translation():
    requirements = LANGUAGE_REQUIREMENTS[Region.UK_WALES]
    assert "cy" in requirements.supported
    assert requirements.translation_required


def test_locales():
    assert DEFAULT_LOCALE.language == "en-GB"
    assert DEFAULT_LOCALE.currency == "GBP"
    assert DEFAULT_LOCALE.timezone == "Europe/London"
    ireland = locale_for_region(Region.IRELAND)
    assert ireland.currency == "EUR"
    assert ireland.timezone == "Europe/Dublin"
