"""
Steep land / landslide hazard.

Landslip (LSO) and Erosion Management (EMO) overlays, plus Environmental
Significance Overlays whose description mentions landslip, erosion or steep
slopes, within 100 m of the property.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geo.coerce import prop
from hazards.base import HazardAnalyzer, Report, locate, scheme_code, sort_by_proximity, zone_description
from hazards.config import STEEP_LAND_BUFFER_M
from hazards.levels import RiskLevel, TWO_BAND_RULES, classify_proximity

log = logging.getLogger(__name__)

MINIMAL_DESCRIPTION = "Minimal landslide risk - no identified landslide or steep land constraints."
MINIMAL_RECOMMENDATIONS = [
    "No significant landslide or steep land constraints identified",
    "Standard foundation and drainage practices apply",
]

LANDSLIP = "Landslip"
EROSION_MANAGEMENT = "Erosion Management"
STEEP_SLOPES = "Steep Slopes"
LANDSLIP_RISK = "Landslip Risk"


@dataclass
class LandslideHazardZone(Report):
    hazard_type: str
    overlay_code: Optional[str]
    description: Optional[str]
    affects_property: bool
    distance_m: Optional[float]


@dataclass
class SteepLandReport(Report):
    risk_level: RiskLevel
    landslide_hazard_zones: List[LandslideHazardZone] = field(default_factory=list)
    affected_by_landslide_risk: bool = False
    requires_geotechnical_assessment: bool = False
    description: str = MINIMAL_DESCRIPTION
    recommendations: List[str] = field(default_factory=lambda: list(MINIMAL_RECOMMENDATIONS))


def is_steep_land_overlay(code: str, description: str) -> bool:
    desc = description.lower()
    if code.startswith("LSO") or code.startswith("EMO"):
        return True
    return code.startswith("ESO") and any(word in desc for word in ("landslip", "erosion", "steep"))


def hazard_type_for(code: str, description: str) -> str:
    if code.startswith("LSO"):
        return LANDSLIP
    if code.startswith("EMO"):
        return EROSION_MANAGEMENT
    if "steep" in description.lower():
        return STEEP_SLOPES
    return LANDSLIP_RISK


def determine_risk_level(zones: List[LandslideHazardZone]) -> RiskLevel:
    return classify_proximity(zones, TWO_BAND_RULES)


def generate_description(level: RiskLevel, zones: List[LandslideHazardZone]) -> str:
    affecting = [z for z in zones if z.affects_property]

    if level == RiskLevel.VERY_HIGH and affecting:
        names = ", ".join(z.overlay_code or z.hazard_type for z in affecting)
        return (
            f"Very high landslide risk - property is within {len(affecting)} landslide hazard zone(s): "
            f"{names}. Significant geotechnical constraints apply."
        )
    if level == RiskLevel.HIGH:
        return ("High landslide risk - property is in close proximity to landslide hazard areas. "
                "Geotechnical considerations apply.")
    if level == RiskLevel.MODERATE:
        return ("Moderate landslide risk - property is near landslide hazard areas. "
                "Consider slope stability in development.")
    return MINIMAL_DESCRIPTION


def generate_recommendations(level: RiskLevel, zones: List[LandslideHazardZone]) -> List[str]:
    recommendations = []
    affecting = [z for z in zones if z.affects_property]

    if affecting:
        if any(z.hazard_type == LANDSLIP for z in affecting):
            recommendations.append("Landslip Overlay applies - planning permit required for most development")
            recommendations.append(
                "Geotechnical report required demonstrating slope stability and landslip risk mitigation")
            recommendations.append("Development must not increase landslip risk on or off site")

        if any(z.hazard_type == EROSION_MANAGEMENT for z in affecting):
            recommendations.append("Erosion Management Overlay applies - erosion control measures required")
            recommendations.append("Prepare erosion and sediment control plan for construction")

        recommendations.append("Engage qualified geotechnical engineer for site assessment")
        recommendations.append("Consider slope stability in foundation design and drainage")
        recommendations.append("Implement measures to prevent soil erosion and manage stormwater")
        recommendations.append("Maintain vegetation on slopes to prevent erosion")
        recommendations.append("Avoid cut and fill operations that could destabilize slopes")
    elif level in (RiskLevel.HIGH, RiskLevel.MODERATE):
        recommendations.append("Property near landslide hazard areas - obtain geotechnical advice")
        recommendations.append("Assess slope stability and erosion potential")
        recommendations.append("Design drainage to prevent slope saturation")
    else:
        recommendations.extend(MINIMAL_RECOMMENDATIONS)

    return recommendations


class SteepLandAnalyzer(HazardAnalyzer):
    """Landslide and erosion overlays near a property."""

    KEY = "steep_land"
    SOURCES = ["Vicmap Planning Overlays"]

    def __init__(self, source=None, geocoder=None, buffer_m: float = STEEP_LAND_BUFFER_M):
        super().__init__(source, geocoder)
        self.buffer_m = buffer_m

    def minimal_report(self) -> SteepLandReport:
        return SteepLandReport(risk_level=RiskLevel.MINIMAL)

    def _analyze(self, lat: float, lon: float) -> SteepLandReport:
        collection = self.fetch_plan_overlays(lat, lon, self.buffer_m)

        zones = []
        for feature in collection:
            code = scheme_code(feature)
            desc = zone_description(feature)
            if not is_steep_land_overlay(code, desc):
                continue

            inside, distance = locate(lat, lon, feature)
            zones.append(LandslideHazardZone(
                hazard_type=hazard_type_for(code, desc),
                overlay_code=prop(feature.properties, "zone_code"),
                description=desc or None,
                affects_property=inside,
                distance_m=distance,
            ))

        zones = sort_by_proximity(zones)
        level = determine_risk_level(zones)
        affected = any(z.affects_property for z in zones)

        log.info(f"Steep land: {len(zones)} hazard zone(s), level {level.name}")

        return SteepLandReport(
            risk_level=level,
            landslide_hazard_zones=zones,
            affected_by_landslide_risk=affected,
            requires_geotechnical_assessment=affected,
            description=generate_description(level, zones),
            recommendations=generate_recommendations(level, zones),
        )
