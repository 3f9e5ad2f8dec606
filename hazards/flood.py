"""
Flood risk.

Historical flood extents (October 2022 event layer) within 1 km, plus the
modelled 1-in-100-year extent when that layer is enabled.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geo.coerce import prop
from geo.geometry import nearest_distance_m
from sources.wfs import buffer_degrees
from hazards.base import HazardAnalyzer, Report
from hazards.config import ENABLE_FLOOD_100_YEAR, FLOOD_100_YEAR_LAYER, FLOOD_BUFFER_M, FLOOD_HISTORY_LAYER
from hazards.levels import FLOOD_RULES, RiskLevel, round_half_up, tier_for_distance

log = logging.getLogger(__name__)

RELEVANT_DISTANCE_M = 1000.0
MAX_REPORTED_SOURCES = 5

DESCRIPTIONS = {
    RiskLevel.VERY_HIGH: "Very high flood risk - property was affected by the October 2022 flood event",
    RiskLevel.HIGH: "High flood risk - property is within the 1 in 100 year flood extent",
    RiskLevel.MODERATE: "Moderate flood risk - property is near identified flood-prone areas",
    RiskLevel.LOW: "Low flood risk - property is in proximity to flood zones but outside high-risk areas",
    RiskLevel.MINIMAL: "Minimal flood risk - no identified flood hazards in the immediate vicinity",
}
MINIMAL_RECOMMENDATIONS = [
    "Property appears to be outside identified flood risk areas",
    "Standard drainage and stormwater management practices recommended",
]


@dataclass
class FloodSource(Report):
    source_name: str
    source_type: str  # "Historical" or "Modelled"
    distance_m: float
    affects_property: bool
    data_quality: Optional[str] = None


@dataclass
class FloodReport(Report):
    risk_level: RiskLevel
    affected_by_historical_flood: bool = False
    within_100_year_flood_extent: bool = False
    flood_sources: List[FloodSource] = field(default_factory=list)
    nearby_flood_zones_count: int = 0
    minimum_distance_to_flood_zone: Optional[float] = None
    description: str = DESCRIPTIONS[RiskLevel.MINIMAL]
    recommendations: List[str] = field(default_factory=lambda: list(MINIMAL_RECOMMENDATIONS))


def determine_risk_level(affected_by_historical: bool, within_100_year: bool,
                         minimum_distance: Optional[float]) -> RiskLevel:
    if affected_by_historical:
        return RiskLevel.VERY_HIGH
    if within_100_year:
        return RiskLevel.HIGH
    return tier_for_distance(minimum_distance, FLOOD_RULES)


def generate_description(level: RiskLevel, sources: List[FloodSource]) -> str:
    """Tier sentence, plus the closest source when there is one (sources sorted by distance)."""
    base = DESCRIPTIONS[level]
    if not sources:
        return base

    closest = sources[0]
    if closest.affects_property:
        detail = f"Property is within {closest.source_name} flood extent"
    else:
        detail = f"Nearest flood zone ({closest.source_name}) is {round_half_up(closest.distance_m)}m away"
    return f"{base}. {detail}"


def generate_recommendations(level: RiskLevel, affected_by_historical: bool, within_100_year: bool) -> List[str]:
    recommendations = []

    if affected_by_historical or within_100_year:
        recommendations.append(
            "Consult with local council regarding Land Subject to Inundation Overlay (LSIO) "
            "or Floodway Overlay (FO) requirements")
        recommendations.append(
            "Building and development may require planning permits with specific flood mitigation measures")
        recommendations.append("Consider flood resilient building design with elevated floor levels")
        recommendations.append(
            "Obtain a detailed flood study or site-specific flood assessment from a qualified professional")

    if affected_by_historical:
        recommendations.append(
            "Review historical flood records and speak with long-term residents about flood experience")
        recommendations.append("Consider flood insurance and emergency preparedness planning")

    if level in (RiskLevel.MODERATE, RiskLevel.LOW):
        recommendations.append(
            "Check planning scheme overlays and consult with council before undertaking development")
        recommendations.append("Consider stormwater management and drainage in property design")

    if level == RiskLevel.MINIMAL:
        recommendations.extend(MINIMAL_RECOMMENDATIONS)

    return recommendations


class FloodAnalyzer(HazardAnalyzer):
    """Historical and modelled flood extents around a property."""

    KEY = "flood"
    SOURCES = ["Vicmap Flood History"]

    def __init__(self, source=None, geocoder=None, buffer_m: float = FLOOD_BUFFER_M,
                 enable_100_year: bool = ENABLE_FLOOD_100_YEAR):
        super().__init__(source, geocoder)
        self.buffer_m = buffer_m
        self.enable_100_year = enable_100_year

    def minimal_report(self) -> FloodReport:
        return FloodReport(risk_level=RiskLevel.MINIMAL)

    def _analyze(self, lat: float, lon: float) -> FloodReport:
        buffer_deg = buffer_degrees(self.buffer_m)
        tasks = {"history": lambda: self.fetch(lat, lon, buffer_deg, FLOOD_HISTORY_LAYER)}
        if self.enable_100_year:
            tasks["100_year"] = lambda: self.fetch(lat, lon, buffer_deg, FLOOD_100_YEAR_LAYER)
        results = self.run_concurrently(tasks)

        sources = []
        for feature in results["history"]:
            distance = nearest_distance_m(lat, lon, feature.geometry)
            sources.append(FloodSource(
                source_name=prop(feature.properties, "event_name") or "2022 October Flood Event",
                source_type="Historical",
                distance_m=distance,
                affects_property=distance == 0,
                data_quality=prop(feature.properties, "data_quality") or "Good",
            ))

        for feature in results.get("100_year") or []:
            distance = nearest_distance_m(lat, lon, feature.geometry)
            sources.append(FloodSource(
                source_name="1 in 100 Year Flood Extent",
                source_type="Modelled",
                distance_m=distance,
                affects_property=distance == 0,
                data_quality="High (Statistical Model)",
            ))

        affected_by_historical = any(s.affects_property and s.source_type == "Historical" for s in sources)
        within_100_year = any(s.affects_property and s.source_type == "Modelled" for s in sources)

        sources.sort(key=lambda s: s.distance_m)
        relevant = [s for s in sources if s.distance_m < RELEVANT_DISTANCE_M]
        minimum_distance = relevant[0].distance_m if relevant else None

        level = determine_risk_level(affected_by_historical, within_100_year, minimum_distance)

        log.info(f"Flood: {len(relevant)} source(s) within 1km, level {level.name}")

        return FloodReport(
            risk_level=level,
            affected_by_historical_flood=affected_by_historical,
            within_100_year_flood_extent=within_100_year,
            flood_sources=relevant[:MAX_REPORTED_SOURCES],
            nearby_flood_zones_count=len(relevant),
            minimum_distance_to_flood_zone=minimum_distance,
            description=generate_description(level, relevant),
            recommendations=generate_recommendations(level, affected_by_historical, within_100_year),
        )
