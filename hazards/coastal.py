"""
Coastal hazards.

Properties inside one of the Victorian coastal regions are checked for Land
Subject to Inundation (LSIO) and Special Building (SBO) overlays within
500 m. Inland properties get the minimal report without a layer fetch.
"""

import logging
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from hazards.base import HazardAnalyzer, Report, locate, scheme_code, sort_by_proximity, zone_description
from hazards.config import COASTAL_BUFFER_M
from hazards.levels import COASTAL_RULES, RiskLevel, classify_proximity

log = logging.getLogger(__name__)

MINIMAL_DESCRIPTION = "Minimal coastal hazard risk - property not in coastal area."
MINIMAL_RECOMMENDATIONS = [
    "No coastal hazard constraints identified",
    "Property not in coastal area",
]

LAND_SUBJECT_TO_INUNDATION = "Land Subject to Inundation"
SPECIAL_BUILDING_OVERLAY = "Special Building Overlay"


class CoastalRegion(NamedTuple):
    name: str
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


# Coarse boxes around the coastline; boundaries inclusive
COASTAL_REGIONS = (
    CoastalRegion("Port Phillip Bay", -38.5, -37.5, 144.5, 145.5),
    CoastalRegion("Western Coast", -38.7, -38.0, 141.0, 143.0),
    CoastalRegion("Eastern Coast", -39.0, -37.5, 145.5, 148.5),
)


@dataclass
class CoastalHazardZone(Report):
    hazard_type: str
    description: Optional[str]
    affects_property: bool
    distance_m: Optional[float]


@dataclass
class CoastalReport(Report):
    risk_level: RiskLevel
    coastal_hazard_zones: List[CoastalHazardZone] = field(default_factory=list)
    affected_by_coastal_hazard: bool = False
    is_coastal_property: bool = False
    description: str = MINIMAL_DESCRIPTION
    recommendations: List[str] = field(default_factory=lambda: list(MINIMAL_RECOMMENDATIONS))


def is_coastal_area(lat: float, lon: float) -> bool:
    return any(region.contains(lat, lon) for region in COASTAL_REGIONS)


def determine_risk_level(zones: List[CoastalHazardZone], is_coastal: bool) -> RiskLevel:
    level = classify_proximity(zones, COASTAL_RULES)
    if level == RiskLevel.MINIMAL and is_coastal:
        return RiskLevel.LOW
    return level


def generate_description(level: RiskLevel, zones: List[CoastalHazardZone]) -> str:
    affecting = [z for z in zones if z.affects_property]

    if level == RiskLevel.VERY_HIGH and affecting:
        types = ", ".join(z.hazard_type for z in affecting)
        return (f"Very high coastal hazard risk - property is within {len(affecting)} coastal hazard zone(s): "
                f"{types}. Development subject to coastal hazard controls.")
    if level == RiskLevel.HIGH:
        return ("High coastal hazard risk - property is in close proximity to coastal hazard zones. "
                "Consider coastal processes in development.")
    if level == RiskLevel.MODERATE:
        return ("Moderate coastal hazard risk - property is near coastal hazard areas. "
                "Coastal considerations apply.")
    if level == RiskLevel.LOW:
        return "Low coastal hazard risk - property is in coastal area but outside identified hazard zones."
    return MINIMAL_DESCRIPTION


def generate_recommendations(level: RiskLevel, zones: List[CoastalHazardZone]) -> List[str]:
    recommendations = []
    affecting = [z for z in zones if z.affects_property]

    if affecting:
        if any(z.hazard_type == LAND_SUBJECT_TO_INUNDATION for z in affecting):
            recommendations.append(
                "Property subject to Land Subject to Inundation Overlay - planning permit required "
                "for most development")
            recommendations.append(
                "Finished floor levels must be set above flood levels specified in the overlay schedule")
            recommendations.append("Obtain detailed flood and inundation assessment from qualified engineer")

        if any(z.hazard_type == SPECIAL_BUILDING_OVERLAY for z in affecting):
            recommendations.append(
                "Special Building Overlay applies - consult with relevant authority (e.g., Melbourne Water)")
            recommendations.append("Development must not increase flood risk or be subject to flood damage")

        recommendations.append("Consider sea level rise and climate change impacts on coastal hazards")
        recommendations.append("Investigate coastal erosion trends and storm surge history")
        recommendations.append("Ensure adequate insurance coverage for coastal hazards")
    elif level in (RiskLevel.HIGH, RiskLevel.MODERATE):
        recommendations.append("Property near coastal hazard zones - consider coastal processes in design")
        recommendations.append("Check with local council regarding coastal management plans")
    elif level == RiskLevel.LOW:
        recommendations.append("Coastal property - standard coastal design considerations apply")
        recommendations.append("Consider salt spray, wind exposure, and coastal erosion in materials selection")
    else:
        recommendations.extend(MINIMAL_RECOMMENDATIONS)

    return recommendations


class CoastalAnalyzer(HazardAnalyzer):
    KEY = "coastal"
    SOURCES = ["Vicmap Planning Overlays"]

    def __init__(self, source=None, geocoder=None, buffer_m: float = COASTAL_BUFFER_M):
        super().__init__(source, geocoder)
        self.buffer_m = buffer_m

    def minimal_report(self) -> CoastalReport:
        return CoastalReport(risk_level=RiskLevel.MINIMAL)

    def _analyze(self, lat: float, lon: float) -> CoastalReport:
        if not is_coastal_area(lat, lon):
            log.info("Coastal: property not in coastal area")
            return self.minimal_report()

        collection = self.fetch_plan_overlays(lat, lon, self.buffer_m)

        zones = []
        for feature in collection:
            code = scheme_code(feature)
            if not (code.startswith("LSIO") or code.startswith("SBO")):
                continue

            inside, distance = locate(lat, lon, feature)
            zones.append(CoastalHazardZone(
                hazard_type=LAND_SUBJECT_TO_INUNDATION if code.startswith("LSIO") else SPECIAL_BUILDING_OVERLAY,
                description=zone_description(feature) or None,
                affects_property=inside,
                distance_m=distance,
            ))

        zones = sort_by_proximity(zones)
        level = determine_risk_level(zones, is_coastal=True)

        log.info(f"Coastal: {len(zones)} hazard zone(s), level {level.name}")

        return CoastalReport(
            risk_level=level,
            coastal_hazard_zones=zones,
            affected_by_coastal_hazard=any(z.affects_property for z in zones),
            is_coastal_property=True,
            description=generate_description(level, zones),
            recommendations=generate_recommendations(level, zones),
        )
