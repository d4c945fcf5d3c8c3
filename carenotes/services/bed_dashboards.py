"""Region-specific bed-management dashboards.

Each regulator expects different headings and reporting cues, so every region
has its own dashboard class; :data:`BED_DASHBOARDS` maps each ``Region`` to
one and refuses to load if a region is left out.
"""

from __future__ import annotations

from typing import Any, Protocol

from carenotes.schemas import BedOverview
from carenotes.services.bed_management import QueryResult, QueryState
from carenotes.tenancy.context import TenantContext
from carenotes.tenancy.regions import LANGUAGE_REQUIREMENTS, REGULATORS, Region
from carenotes.tenancy.variants import RegionalVariants


class BedDashboard(Protocol):
    region: Region

    def render(self, result: QueryResult[BedOverview], context: TenantContext) -> dict[str, Any]:
        ...


def _base_layout(
    region: Region, result: QueryResult[BedOverview], context: TenantContext
) -> dict[str, Any]:
    regulator = REGULATORS[region]
    layout: dict[str, Any] = {
        "region": context.region_key,
        "regulator": {"code": regulator.code, "name": regulator.name, "website": regulator.website},
        "locale": context.locale.model_dump(),
        "state": result.state.value,
    }
    if result.state is QueryState.ERROR:
        layout["error"] = result.error
    else:
        layout["overview"] = result.data.model_dump(mode="json")
    return layout


def _alert(result: QueryResult[BedOverview], context: TenantContext) -> bool:
    if result.data is None or not result.data.metrics.total:
        return False
    return result.data.metrics.occupancy_rate >= context.settings.occupancy_alert_threshold


class EnglandBedDashboard:
    region = Region.UK_ENGLAND

    def render(self, result: QueryResult[BedOverview], context: TenantContext) -> dict[str, Any]:
        layout = _base_layout(self.region, result, context)
        layout["title"] = "Bed Management"
        layout["sections"] = ["occupancy", "bed_status", "maintenance"]
        layout["compliance"] = {
            "framework": "CQC Key Lines of Enquiry",
            "statutory_notifications": True,
        }
        layout["capacity_alert"] = _alert(result, context)
        return layout


class WalesBedDashboard:
    """Bilingual dashboard; Welsh headings lead when the active offer is on."""

    region = Region.UK_WALES

    _TITLES = {"en": "Bed Management", "cy": "Rheoli Gwelyau"}
    _SECTIONS = {
        "occupancy": {"en": "Occupancy", "cy": "Defnydd"},
        "bed_status": {"en": "Bed status", "cy": "Statws gwelyau"},
        "maintenance": {"en": "Maintenance", "cy": "Cynnal a chadw"},
    }

    def render(self, result: QueryResult[BedOverview], context: TenantContext) -> dict[str, Any]:
        layout = _base_layout(self.region, result, context)
        active_offer = context.settings.welsh_language_active_offer
        order = ("cy", "en") if active_offer else ("en", "cy")
        layout["title"] = {lang: self._TITLES[lang] for lang in order}
        layout["sections"] = [
            {"key": key, "labels": {lang: labels[lang] for lang in order}}
            for key, labels in self._SECTIONS.items()
        ]
        layout["languages"] = list(LANGUAGE_REQUIREMENTS[self.region].supported)
        layout["welsh_language_active_offer"] = active_offer
        layout["compliance"] = {"framework": "Regulation and Inspection of Social Care (Wales) Act 2016"}
        layout["capacity_alert"] = _alert(result, context)
        return layout


class ScotlandBedDashboard:
    region = Region.UK_SCOTLAND

    def render(self, result: QueryResult[BedOverview], context: TenantContext) -> dict[str, Any]:
        layout = _base_layout(self.region, result, context)
        layout["title"] = "Bed Management"
        layout["sections"] = ["occupancy", "bed_status", "maintenance", "quality_framework"]
        layout["compliance"] = {
            "framework": "Health and Social Care Standards",
            "quality_framework": "Care Inspectorate Quality Framework",
        }
        layout["capacity_alert"] = _alert(result, context)
        return layout


class NorthernIrelandBedDashboard:
    region = Region.UK_NORTHERN_IRELAND

    def render(self, result: QueryResult[BedOverview], context: TenantContext) -> dict[str, Any]:
        layout = _base_layout(self.region, result, context)
        layout["title"] = "Bed Management"
        layout["sections"] = ["bed_status", "occupancy", "maintenance"]
        layout["compliance"] = {"framework": "RQIA Care Standards for Nursing Homes"}
        layout["capacity_alert"] = _alert(result, context)
        return layout


class IrelandBedDashboard:
    region = Region.IRELAND

    def render(self, result: QueryResult[BedOverview], context: TenantContext) -> dict[str, Any]:
        layout = _base_layout(self.region, result, context)
        layout["title"] = "Bed Management"
        layout["sections"] = ["occupancy", "bed_status", "maintenance", "nhss"]
        layout["compliance"] = {
            "framework": "HIQA National Standards for Residential Care Settings",
            "fair_deal_scheme": True,
        }
        layout["capacity_alert"] = _alert(result, context)
        return layout


BED_DASHBOARDS: RegionalVariants[BedDashboard] = RegionalVariants(
    "bed_management_dashboard",
    {
        Region.UK_ENGLAND: EnglandBedDashboard(),
        Region.UK_WALES: WalesBedDashboard(),
        Region.UK_SCOTLAND: ScotlandBedDashboard(),
        Region.UK_NORTHERN_IRELAND: NorthernIrelandBedDashboard(),
        Region.IRELAND: IrelandBedDashboard(),
    },
)


__all__ = [
    "BED_DASHBOARDS",
    "BedDashboard",
    "EnglandBedDashboard",
    "IrelandBedDashboard",
    "NorthernIrelandBedDashboard",
    "ScotlandBedDashboard",
    "WalesBedDashboard",
]
