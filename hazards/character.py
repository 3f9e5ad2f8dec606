"""
Neighbourhood character.

Neighbourhood Character (NCO) and Significant Landscape (SLO) overlays
within 200 m.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geo.coerce import prop
from hazards.base import HazardAnalyzer, Report, locate, scheme_code, sort_by_proximity
from hazards.config import CHARACTER_BUFFER_M
from hazards.levels import RiskLevel, THREE_BAND_RULES, classify_proximity

log = logging.getLogger(__name__)

MAX_REPORTED_OVERLAYS = 10

MINIMAL_DESCRIPTION = ("Minimal character significance - no identified character constraints "
                       "in the immediate vicinity.")
MINIMAL_RECOMMENDATIONS = [
    "No specific character overlay constraints identified",
    "Standard residential design provisions apply",
]


@dataclass
class CharacterOverlay(Report):
    overlay_code: str
    overlay_type: str  # "NCO" or "SLO"
    overlay_name: str
    description: Optional[str]
    lga: Optional[str]
    affects_property: bool
    distance_m: Optional[float]


@dataclass
class CharacterReport(Report):
    significance_level: RiskLevel
    character_overlays: List[CharacterOverlay] = field(default_factory=list)
    affected_by_character_overlay: bool = False
    requires_character_assessment: bool = False
    description: str = MINIMAL_DESCRIPTION
    recommendations: List[str] = field(default_factory=lambda: list(MINIMAL_RECOMMENDATIONS))


def determine_significance_level(overlays: List[CharacterOverlay]) -> RiskLevel:
    return classify_proximity(overlays, THREE_BAND_RULES)


def generate_description(level: RiskLevel, overlays: List[CharacterOverlay]) -> str:
    affecting = [o for o in overlays if o.affects_property]

    if level == RiskLevel.VERY_HIGH and affecting:
        codes = ", ".join(o.overlay_code for o in affecting)
        return (f"Very high character significance - property is within {len(affecting)} character overlay(s): "
                f"{codes}. Development must respect neighbourhood character.")
    if level == RiskLevel.HIGH:
        return ("High character significance - property is in close proximity to character overlay areas. "
                "Development should consider neighbourhood character context.")
    if level == RiskLevel.MODERATE:
        return ("Moderate character significance - property is near character-protected areas. "
                "Consider character impacts in development design.")
    if level == RiskLevel.LOW:
        return "Low character significance - property is in an area with some character context."
    return MINIMAL_DESCRIPTION


def generate_recommendations(level: RiskLevel, overlays: List[CharacterOverlay]) -> List[str]:
    recommendations = []
    affecting = [o for o in overlays if o.affects_property]

    if affecting:
        if any(o.overlay_type == "NCO" for o in affecting):
            recommendations.append(
                "Planning permit required for most residential development including subdivisions, "
                "buildings and works")
            recommendations.append(
                "Development must meet neighbourhood character objectives specified in the NCO schedule")
            recommendations.append(
                "Prepare a neighbourhood character assessment to demonstrate design response")

        if any(o.overlay_type == "SLO" for o in affecting):
            recommendations.append("Development must protect significant landscape features and vegetation")
            recommendations.append("Consult the Significant Landscape Overlay schedule for specific requirements")

        recommendations.append("Engage an architect or designer experienced with character overlay requirements")
        recommendations.append("Review local character guidelines and preferred character statements")
    elif level in (RiskLevel.HIGH, RiskLevel.MODERATE):
        recommendations.append(
            "Consider neighbourhood character in development design even though not directly affected by overlay")
        recommendations.append("Respect existing building scale, setbacks, and landscape character")
    else:
        recommendations.extend(MINIMAL_RECOMMENDATIONS)

    return recommendations


class CharacterAnalyzer(HazardAnalyzer):
    KEY = "character"
    SOURCES = ["Vicmap Planning Overlays"]

    def __init__(self, source=None, geocoder=None, buffer_m: float = CHARACTER_BUFFER_M):
        super().__init__(source, geocoder)
        self.buffer_m = buffer_m

    def minimal_report(self) -> CharacterReport:
        return CharacterReport(significance_level=RiskLevel.MINIMAL)

    def _analyze(self, lat: float, lon: float) -> CharacterReport:
        collection = self.fetch_plan_overlays(lat, lon, self.buffer_m)

        overlays = []
        for feature in collection:
            code = scheme_code(feature)
            if not (code.startswith("NCO") or code.startswith("SLO")):
                continue

            inside, distance = locate(lat, lon, feature)
            props = feature.properties
            overlays.append(CharacterOverlay(
                overlay_code=prop(props, "zone_code") or "Unknown",
                overlay_type="NCO" if code.startswith("NCO") else "SLO",
                overlay_name=prop(props, "zone_description") or "Unknown Overlay",
                description=prop(props, "zone_description"),
                lga=prop(props, "lga"),
                affects_property=inside,
                distance_m=distance,
            ))

        if not overlays:
            return self.minimal_report()

        overlays = sort_by_proximity(overlays)
        level = determine_significance_level(overlays)
        affected = any(o.affects_property for o in overlays)

        log.info(f"Character: {len(overlays)} overlay(s), level {level.name}")

        return CharacterReport(
            significance_level=level,
            character_overlays=overlays[:MAX_REPORTED_OVERLAYS],
            affected_by_character_overlay=affected,
            requires_character_assessment=affected,
            description=generate_description(level, overlays),
            recommendations=generate_recommendations(level, overlays),
        )
