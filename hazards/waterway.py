"""
Waterway significance.

Floodway (FO), Public Acquisition (PAO) and water-related Environmental
Significance Overlays within 200 m.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from hazards.base import HazardAnalyzer, Report, locate, scheme_code, sort_by_proximity, zone_description
from hazards.config import WATERWAY_BUFFER_M
from hazards.levels import RiskLevel, THREE_BAND_RULES, classify_proximity, nearest_known_distance, round_half_up

log = logging.getLogger(__name__)

MAX_REPORTED_FEATURES = 10

MINIMAL_DESCRIPTION = "Minimal waterway significance - no identified waterway constraints."
MINIMAL_RECOMMENDATIONS = [
    "No significant waterway constraints identified",
    "Standard stormwater management practices apply",
]

FLOODWAY = "Floodway"
WATERWAY_RESERVATION = "Waterway Reservation"
WETLAND = "Wetland"
WATERWAY = "Waterway"


@dataclass
class WaterwayFeature(Report):
    feature_type: str
    name: Optional[str]
    distance_m: Optional[float]
    in_buffer: bool


@dataclass
class WaterwayReport(Report):
    significance_level: RiskLevel
    waterway_features: List[WaterwayFeature] = field(default_factory=list)
    in_waterway_buffer: bool = False
    nearest_waterway_distance: Optional[float] = None
    requires_waterway_assessment: bool = False
    description: str = MINIMAL_DESCRIPTION
    recommendations: List[str] = field(default_factory=lambda: list(MINIMAL_RECOMMENDATIONS))


def is_waterway_overlay(code: str, description: str) -> bool:
    if code.startswith("FO") or code.startswith("PAO"):
        return True
    return code.startswith("ESO") and "water" in description.lower()


def feature_type_for(code: str, description: str) -> str:
    if code.startswith("FO"):
        return FLOODWAY
    if code.startswith("PAO"):
        return WATERWAY_RESERVATION
    if "wetland" in description.lower():
        return WETLAND
    return WATERWAY


def determine_significance_level(features: List[WaterwayFeature], in_buffer: bool = False) -> RiskLevel:
    if in_buffer:
        return RiskLevel.VERY_HIGH
    return classify_proximity(features, THREE_BAND_RULES, flag="in_buffer")


def _nearest_outside(features: List[WaterwayFeature]) -> Optional[WaterwayFeature]:
    candidates = [f for f in features if not f.in_buffer and f.distance_m is not None]
    return min(candidates, key=lambda f: f.distance_m) if candidates else None


def generate_description(level: RiskLevel, features: List[WaterwayFeature]) -> str:
    in_buffer = [f for f in features if f.in_buffer]

    if level == RiskLevel.VERY_HIGH and in_buffer:
        types = ", ".join(f.feature_type for f in in_buffer)
        return (f"Very high waterway significance - property is within waterway buffer or {types} zone. "
                "Significant waterway constraints apply.")

    nearest = _nearest_outside(features)
    if level == RiskLevel.HIGH and nearest:
        return (f"High waterway significance - property is within {round_half_up(nearest.distance_m)}m of "
                f"{nearest.feature_type}. Waterway setbacks and protections apply.")
    if level == RiskLevel.MODERATE and nearest:
        return (f"Moderate waterway significance - property is {round_half_up(nearest.distance_m)}m from "
                f"{nearest.feature_type}. Consider waterway impacts.")
    if level == RiskLevel.LOW:
        return "Low waterway significance - property has some proximity to waterways."
    return MINIMAL_DESCRIPTION


def generate_recommendations(level: RiskLevel, features: List[WaterwayFeature]) -> List[str]:
    recommendations = []
    in_buffer = [f for f in features if f.in_buffer]

    if in_buffer:
        if any(f.feature_type == FLOODWAY for f in in_buffer):
            recommendations.append(
                "Floodway Overlay applies - most development prohibited to protect waterway conveyance")
            recommendations.append("Consult with waterway management authority (e.g., Melbourne Water)")
            recommendations.append("Development must not increase flood risk or obstruct floodway")

        if any(f.feature_type == WATERWAY_RESERVATION for f in in_buffer):
            recommendations.append(
                "Public Acquisition Overlay for waterway - land may be acquired for waterway purposes")
            recommendations.append("Consult with the acquiring authority before undertaking development")

        recommendations.append("Maintain riparian vegetation and waterway buffers")
        recommendations.append("Implement water sensitive urban design (WSUD) principles")
        recommendations.append("Prevent stormwater pollution and erosion during construction")
    elif level in (RiskLevel.HIGH, RiskLevel.MODERATE):
        recommendations.append("Property near waterway - implement setbacks and buffer zones")
        recommendations.append("Protect water quality through appropriate stormwater management")
        recommendations.append("Consider waterway health in landscape design")
    else:
        recommendations.extend(MINIMAL_RECOMMENDATIONS)

    return recommendations


class WaterwayAnalyzer(HazardAnalyzer):
    """Waterway overlays near a property."""

    KEY = "waterway"
    SOURCES = ["Vicmap Planning Overlays"]

    def __init__(self, source=None, geocoder=None, buffer_m: float = WATERWAY_BUFFER_M):
        super().__init__(source, geocoder)
        self.buffer_m = buffer_m

    def minimal_report(self) -> WaterwayReport:
        return WaterwayReport(significance_level=RiskLevel.MINIMAL)

    def _analyze(self, lat: float, lon: float) -> WaterwayReport:
        collection = self.fetch_plan_overlays(lat, lon, self.buffer_m)

        features = []
        for feature in collection:
            code = scheme_code(feature)
            desc = zone_description(feature)
            if not is_waterway_overlay(code, desc):
                continue

            inside, distance = locate(lat, lon, feature)
            features.append(WaterwayFeature(
                feature_type=feature_type_for(code, desc),
                name=desc or None,
                distance_m=distance,
                in_buffer=inside,
            ))

        features = sort_by_proximity(features, flag="in_buffer")
        in_buffer = any(f.in_buffer for f in features)
        level = determine_significance_level(features, in_buffer)

        log.info(f"Waterway: {len(features)} overlay(s), level {level.name}")

        return WaterwayReport(
            significance_level=level,
            waterway_features=features[:MAX_REPORTED_FEATURES],
            in_waterway_buffer=in_buffer,
            nearest_waterway_distance=nearest_known_distance(f.distance_m for f in features),
            requires_waterway_assessment=in_buffer,
            description=generate_description(level, features),
            recommendations=generate_recommendations(level, features),
        )
