"""
Heritage significance.

Heritage (HO), Vegetation Protection (VPO) and Environmental Significance
(ESO) overlays within 500 m, combined with heritage inventory items and
Victorian Heritage Register (VHR) listings at the property.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geo.coerce import prop
from hazards.base import HazardAnalyzer, Report, locate, scheme_code, sort_by_proximity
from hazards.config import DEFAULT_BUFFER_DEG, HERITAGE_INVENTORY_LAYER, HERITAGE_OVERLAY_BUFFER_M
from hazards.levels import RiskLevel, THREE_BAND_RULES, classify_proximity

log = logging.getLogger(__name__)

HERITAGE_OVERLAY_PREFIXES = ("HO", "VPO", "ESO")
MAX_REPORTED_OVERLAYS = 10

MINIMAL_DESCRIPTION = ("Minimal heritage significance - no identified heritage constraints "
                       "in the immediate vicinity.")
MINIMAL_RECOMMENDATIONS = [
    "No specific heritage constraints identified",
    "Standard planning provisions apply - check local planning scheme",
]
FAILURE_DESCRIPTION = "Unable to complete heritage analysis"
FAILURE_RECOMMENDATIONS = [
    "Consult with local council regarding heritage requirements",
    "Consider obtaining a heritage assessment for any significant works",
]


@dataclass
class HeritageOverlay(Report):
    overlay_code: str
    overlay_name: str
    description: Optional[str]
    lga: Optional[str]
    gazettal_date: Optional[str]
    affects_property: bool
    distance_m: Optional[float]


@dataclass
class HeritageInventoryItem(Report):
    heritage_management_number: Optional[str]
    site_name: Optional[str]
    heritage_object: Optional[str]

    @property
    def is_vhr(self) -> bool:
        return (self.heritage_management_number or "").upper().startswith("VHR")


@dataclass
class PlanningOverlaySummary(Report):
    code: str
    name: str
    affects_property: bool
    distance: Optional[float]


@dataclass
class HeritageReport(Report):
    significance_level: RiskLevel
    heritage_listings: List[str] = field(default_factory=list)
    planning_overlays: List[PlanningOverlaySummary] = field(default_factory=list)
    heritage_inventory_items: int = 0
    requires_heritage_permit: bool = False
    description: str = MINIMAL_DESCRIPTION
    recommendations: List[str] = field(default_factory=lambda: list(MINIMAL_RECOMMENDATIONS))


def determine_significance_level(overlays: List[HeritageOverlay],
                                 inventory: List[HeritageInventoryItem]) -> RiskLevel:
    if any(item.is_vhr for item in inventory):
        return RiskLevel.VERY_HIGH

    level = classify_proximity(overlays, THREE_BAND_RULES)
    if level == RiskLevel.VERY_HIGH:
        return level
    if inventory and level.value < RiskLevel.HIGH.value:
        return RiskLevel.HIGH
    if level == RiskLevel.MINIMAL and overlays:
        # Any overlay in the search radius counts, even beyond the distance bands
        return RiskLevel.LOW
    return level


def heritage_listings(overlays: List[HeritageOverlay], inventory: List[HeritageInventoryItem]) -> List[str]:
    listings = [f"{o.overlay_code} - {o.overlay_name}" for o in overlays if o.affects_property]
    for item in inventory:
        listings.append(f"{item.heritage_management_number} - {item.site_name} ({item.heritage_object})")
    return listings


def generate_description(level: RiskLevel, overlays: List[HeritageOverlay],
                         inventory: List[HeritageInventoryItem]) -> str:
    affecting = [o for o in overlays if o.affects_property]
    vhr = [item for item in inventory if item.is_vhr]

    if level == RiskLevel.VERY_HIGH:
        if vhr:
            return (f"Very high heritage significance - property contains {len(vhr)} Victorian Heritage "
                    "Register listing(s). The property is subject to significant heritage controls.")
        codes = ", ".join(o.overlay_code for o in affecting)
        return (f"Very high heritage significance - property is within {len(affecting)} Heritage Overlay(s): "
                f"{codes}. Planning permits required for most development.")
    if level == RiskLevel.HIGH:
        if inventory:
            return (f"High heritage significance - property contains {len(inventory)} heritage inventory "
                    "item(s). Development may require heritage assessment.")
        return ("High heritage significance - property is in close proximity to Heritage Overlay areas. "
                "Development should consider heritage context.")
    if level == RiskLevel.MODERATE:
        return ("Moderate heritage significance - property is near heritage-protected areas. "
                "Consider heritage impacts in development planning.")
    if level == RiskLevel.LOW:
        return ("Low heritage significance - property is in an area with some heritage context but not "
                "directly affected by heritage controls.")
    return MINIMAL_DESCRIPTION


def generate_recommendations(level: RiskLevel, overlays: List[HeritageOverlay],
                             inventory: List[HeritageInventoryItem]) -> List[str]:
    recommendations = []
    affecting = [o for o in overlays if o.affects_property]

    if any(item.is_vhr for item in inventory):
        recommendations.append(
            "Property is on the Victorian Heritage Register - Heritage Victoria approval required for any works")
        recommendations.append(
            "Consult with Heritage Victoria before undertaking any development, demolition, or alterations")
        recommendations.append("Engage a qualified heritage consultant for any proposed works")
        recommendations.append("Consider heritage grants and incentives for conservation works")

    if any(o.overlay_code.startswith("HO") for o in affecting):
        recommendations.append("Planning permit required for most external alterations, additions, and demolition")
        recommendations.append("Review the Heritage Overlay schedule in the local planning scheme for specific controls")
        recommendations.append("Consult with council's heritage advisor before planning any works")
        recommendations.append("Retain and conserve heritage fabric where possible")

    if any(o.overlay_code.startswith("ESO") for o in affecting):
        recommendations.append(
            "Environmental Significance Overlay applies - consult council regarding vegetation "
            "and landscape requirements")

    if inventory and not affecting:
        recommendations.append("Heritage inventory items present - consider heritage impacts in development design")
        recommendations.append(
            "While not subject to formal Heritage Overlay, heritage assessment recommended for major works")

    if level in (RiskLevel.MODERATE, RiskLevel.LOW):
        recommendations.append("Consider heritage context when designing new development")
        recommendations.append("Ensure new works are sympathetic to surrounding heritage character")

    if level == RiskLevel.MINIMAL:
        recommendations.extend(MINIMAL_RECOMMENDATIONS)

    return recommendations


class HeritageAnalyzer(HazardAnalyzer):
    """Heritage overlays and inventory at a property."""

    KEY = "heritage"
    SOURCES = ["Vicmap Planning Overlays", "Victorian Heritage Inventory"]

    def __init__(self, source=None, geocoder=None, buffer_m: float = HERITAGE_OVERLAY_BUFFER_M):
        super().__init__(source, geocoder)
        self.buffer_m = buffer_m

    def minimal_report(self) -> HeritageReport:
        return HeritageReport(significance_level=RiskLevel.MINIMAL)

    def failure_report(self) -> HeritageReport:
        return HeritageReport(
            significance_level=RiskLevel.MINIMAL,
            description=FAILURE_DESCRIPTION,
            recommendations=list(FAILURE_RECOMMENDATIONS),
        )

    def analyze(self, lat: float, lon: float) -> HeritageReport:
        try:
            return self._analyze(lat, lon)
        except Exception as e:
            log.error(f"{self.KEY} analysis failed at ({lat}, {lon}): {e}")
            return self.failure_report()

    def _analyze(self, lat: float, lon: float) -> HeritageReport:
        results = self.run_concurrently({
            "overlays": lambda: self.fetch_plan_overlays(lat, lon, self.buffer_m),
            "inventory": lambda: self.fetch(lat, lon, DEFAULT_BUFFER_DEG, HERITAGE_INVENTORY_LAYER),
        })

        overlays = []
        for feature in results["overlays"]:
            if not scheme_code(feature).startswith(HERITAGE_OVERLAY_PREFIXES):
                continue

            inside, distance = locate(lat, lon, feature)
            props = feature.properties
            overlays.append(HeritageOverlay(
                overlay_code=prop(props, "zone_code") or "Unknown",
                overlay_name=prop(props, "zone_description") or "Unknown Overlay",
                description=prop(props, "zone_description"),
                lga=prop(props, "lga"),
                gazettal_date=prop(props, "gaz_begin_date"),
                affects_property=inside,
                distance_m=distance,
            ))

        inventory = []
        for feature in results["inventory"]:
            props = feature.properties
            inventory.append(HeritageInventoryItem(
                heritage_management_number=prop(
                    props, "heritage_management_number", "hermes_number", "her_num", "site_id"),
                site_name=prop(props, "site_name", "name"),
                heritage_object=prop(props, "heritage_object", "object_type"),
            ))

        overlays = sort_by_proximity(overlays)
        level = determine_significance_level(overlays, inventory)
        requires_permit = level == RiskLevel.VERY_HIGH

        log.info(f"Heritage: {len(overlays)} overlay(s), {len(inventory)} inventory item(s), level {level.name}")

        return HeritageReport(
            significance_level=level,
            heritage_listings=heritage_listings(overlays, inventory),
            planning_overlays=[
                PlanningOverlaySummary(o.overlay_code, o.overlay_name, o.affects_property, o.distance_m)
                for o in overlays[:MAX_REPORTED_OVERLAYS]
            ],
            heritage_inventory_items=len(inventory),
            requires_heritage_permit=requires_permit,
            description=generate_description(level, overlays, inventory),
            recommendations=generate_recommendations(level, overlays, inventory),
        )
