import pytest

from carenotes.core.errors import ConfigurationError, MissingRegionVariantError, UnknownRegionError
from carenotes.services.bed_dashboards import BED_DASHBOARDS, WalesBedDashboard
from carenotes.services.bed_management import QueryResult
from carenotes.tenancy.regions import REGION_KEYS, Region
from carenotes.tenancy.variants import RegionalVariants, select_variant


def test_select_variant_returns_registered_entry():
    variants = {"england": "EnglandView", "wales": "WalesView"}
    assert select_variant("wales", variants) == "WalesView"


def test_select_variant_missing_key_is_configuration_error():
    with pytest.raises(MissingRegionVariantError) as excinfo:
        select_variant("scotland", {"england": "EnglandView"}, feature="dashboard")
    assert isinstance(excinfo.value, ConfigurationError)
    assert excinfo.value.missing == ("scotland",)
    assert "dashboard" in str(excinfo.value)


def test_regional_variants_requires_every_region():
    with pytest.raises(MissingRegionVariantError) as excinfo:
        RegionalVariants("reports", {Region.UK_ENGLAND: "england-report"})
    assert set(excinfo.value.missing) == {
        region.value for region in Region if region is not Region.UK_ENGLAND
    }


def test_regional_variants_select_by_region_or_key():
    variants = RegionalVariants("labels", {region: region.value.lower() for region in Region})
    assert variants.select(Region.UK_SCOTLAND) == "uk_scotland"
    assert variants.select("ireland") == "ireland"
    assert len(variants) == len(Region)


def test_regional_variants_unknown_key():
    variants = RegionalVariants("labels", {region: region.value for region in Region})
    with pytest.raises(UnknownRegionError):
        variants.select("atlantis")


def test_bed_dashboards_cover_every_region():
    assert len(BED_DASHBOARDS) == len(Region)
    for region, key in REGION_KEYS.items():
        assert BED_DASHBOARDS.select(key).region is region


def test_dashboards_are_distinct_classes():
    classes = {type(BED_DASHBOARDS.select(region)) for region in Region}
    assert len(classes) == len(Region)


def test_wales_dashboard_leads_with_welsh_when_active_offer(make_org, context_for):
    organization = make_org(Region.UK_WALES, settings={"welsh_language_active_offer": True})
    context = context_for(organization)
    layout = WalesBedDashboard().render(QueryResult.failed("unavailable"), context)

    assert list(layout["title"]) == ["cy", "en"]
    assert layout["title"]["cy"] == "Rheoli Gwelyau"
    assert layout["regulator"]["code"] == "CIW"
    assert layout["state"] == "error"
    assert layout["error"] == "unavailable"
