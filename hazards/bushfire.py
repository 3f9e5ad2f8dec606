"""
Bushfire risk.

Combines three signals into a weighted score:
- Bushfire Prone Area designation at the property
- Fire management zone (local GeoJSON, optional)
- Historical fire scars within ~10 km, and how many of them are recent

The score maps onto LOW / MEDIUM / HIGH / EXTREME (see hazards.levels).
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from geo.coerce import prop, prop_float, to_optional_int
from geo.features import MultiPolygon, Polygon
from geo.geometry import haversine_km, point_in_polygon, ring_centroid
from sources.fire_zones import FireManagementZone, FireZoneReader
from hazards.base import HazardAnalyzer, Report
from hazards.config import (
    BUSHFIRE_PRONE_LAYER, DEFAULT_BUFFER_DEG, FIRE_HISTORY_BUFFER_DEG, FIRE_HISTORY_COUNT,
    FIRE_HISTORY_LAYER, SOURCE_TIMEOUT,
)
from hazards.levels import (
    BUSHFIRE_FIRES_WITHIN_5KM, BUSHFIRE_FIRES_WITHIN_10KM, BUSHFIRE_OTHER_ZONE_POINTS,
    BUSHFIRE_PRONE_AREA_POINTS, BUSHFIRE_RECENT_FIRES, BUSHFIRE_RECENT_YEARS, BUSHFIRE_TIERS,
    BUSHFIRE_ZONE_TYPE_POINTS, BushfireRiskLevel, tier_for_score,
)

log = logging.getLogger(__name__)

NEAR_FIRE_KM = 5.0
AREA_FIRE_KM = 10.0

_YEAR = re.compile(r"\d{4}")


@dataclass
class FireHistoryRecord(Report):
    fire_id: Optional[str]
    fire_name: Optional[str]
    fire_type: Optional[str]
    fire_season: Optional[str]
    ignition_date: Optional[str]
    area: dict
    distance_km: Optional[float]

    @property
    def season_year(self) -> Optional[int]:
        match = _YEAR.search(self.fire_season or "")
        return int(match.group()) if match else None


@dataclass
class BushfireRiskFactors(Report):
    in_bushfire_prone_area: bool = False
    distance_to_prone_area: Optional[float] = None
    historical_fires_nearby: int = 0
    recent_fires_nearby: int = 0
    fire_management_zone: Optional[FireManagementZone] = None
    closest_historical_fire: Optional[FireHistoryRecord] = None


@dataclass
class BushfireReport(Report):
    overall_risk: BushfireRiskLevel
    risk_factors: BushfireRiskFactors = field(default_factory=BushfireRiskFactors)
    summary: str = ""
    recommendations: List[str] = field(default_factory=list)
    fire_history: List[FireHistoryRecord] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# SCORING
# ═══════════════════════════════════════════════════════════════════════════════

def zone_type_number(zone: Optional[FireManagementZone]) -> Optional[int]:
    return to_optional_int(zone.zone_type) if zone else None


def count_fires_within(fires: List[FireHistoryRecord], max_km: float) -> int:
    return sum(1 for f in fires if f.distance_km is not None and f.distance_km <= max_km)


def count_recent_fires(fires: List[FireHistoryRecord], current_year: Optional[int] = None) -> int:
    """Fires within 10 km whose season falls in the last BUSHFIRE_RECENT_YEARS years."""
    year = current_year or datetime.now().year
    cutoff = year - BUSHFIRE_RECENT_YEARS
    return sum(
        1 for f in fires
        if f.season_year is not None and f.season_year >= cutoff
        and f.distance_km is not None and f.distance_km <= AREA_FIRE_KM
    )


def calculate_risk_score(in_prone_area: bool, zone: Optional[FireManagementZone],
                         fires_within_5km: int, recent_fires: int, fires_within_10km: int) -> float:
    score = 0.0
    if in_prone_area:
        score += BUSHFIRE_PRONE_AREA_POINTS
    if zone is not None and zone.is_within_zone:
        score += BUSHFIRE_ZONE_TYPE_POINTS.get(zone_type_number(zone), BUSHFIRE_OTHER_ZONE_POINTS)
    score += BUSHFIRE_FIRES_WITHIN_5KM.points(fires_within_5km)
    score += BUSHFIRE_RECENT_FIRES.points(recent_fires)
    score += BUSHFIRE_FIRES_WITHIN_10KM.points(fires_within_10km)
    return score


def determine_risk_level(score: float) -> BushfireRiskLevel:
    return tier_for_score(score, BUSHFIRE_TIERS, BushfireRiskLevel.LOW)


# ═══════════════════════════════════════════════════════════════════════════════
# NARRATIVE
# ═══════════════════════════════════════════════════════════════════════════════

def generate_summary(level: BushfireRiskLevel, in_prone_area: bool, zone: Optional[FireManagementZone],
                     fires_within_5km: int, recent_fires: int) -> str:
    parts = [f"This property has a {level.name} bushfire risk rating."]

    if in_prone_area:
        parts.append("The property is located within a designated bushfire prone area.")
    else:
        parts.append("The property is not within a designated bushfire prone area.")

    if zone is not None:
        if zone.is_within_zone:
            parts.append(f"The property is within a {zone.zone_type_description}.")
        else:
            parts.append(
                f"The nearest fire management zone ({zone.zone_type_description}) is {zone.distance_km:.1f}km away.")

    if fires_within_5km > 0:
        plural = "s" if fires_within_5km != 1 else ""
        parts.append(f"There have been {fires_within_5km} recorded fire{plural} within 5km of the property.")

    if recent_fires > 0:
        plural, verb = ("s", "have") if recent_fires != 1 else ("", "has")
        parts.append(f"{recent_fires} fire{plural} {verb} occurred in the area within the last 10 years.")

    return " ".join(parts)


def generate_recommendations(level: BushfireRiskLevel, in_prone_area: bool,
                             zone: Optional[FireManagementZone], recent_fires: int) -> List[str]:
    recommendations = []

    if level in (BushfireRiskLevel.EXTREME, BushfireRiskLevel.HIGH):
        recommendations.append("Develop and maintain a comprehensive bushfire survival plan")
        recommendations.append("Ensure property has adequate defendable space and fuel load management")
        recommendations.append("Install ember-proof screens on windows and vents")
        recommendations.append("Consider bushfire-rated construction materials for any renovations")

    if in_prone_area:
        recommendations.append("Check building regulations for bushfire prone areas (AS 3959)")
        recommendations.append("Verify bushfire attack level (BAL) rating for the property")

    if zone is not None and zone.is_within_zone:
        recommendations.append("Review fire management zone requirements and restrictions for the property")
        zone_type = zone_type_number(zone)
        if zone_type == 1:
            recommendations.append(
                "Asset Protection Zone: Maintain minimal fuel loads and ensure regular vegetation management")
        elif zone_type == 3:
            recommendations.append(
                "Landscape Management Zone: Understand fuel management objectives and seasonal restrictions")

    if recent_fires > 0:
        recommendations.append("Review CFA (Country Fire Authority) fire history and learn from recent incidents")

    recommendations.append("Register for emergency alerts with VicEmergency")
    recommendations.append("Prepare an emergency evacuation kit and know evacuation routes")

    if level == BushfireRiskLevel.LOW:
        recommendations.append("While risk is low, maintain general fire safety awareness")

    return recommendations


# ═══════════════════════════════════════════════════════════════════════════════
# ORCHESTRATION
# ═══════════════════════════════════════════════════════════════════════════════

def fire_record(lat: float, lon: float, feature) -> FireHistoryRecord:
    props = feature.properties
    centre = ring_centroid(feature.geometry)
    name = prop(props, "name")
    area_ha = prop_float(props, "area_ha")
    return FireHistoryRecord(
        fire_id=prop(props, "fire_no", "firekey"),
        fire_name=name.strip() if name else None,
        fire_type=prop(props, "firetype", "treatment_type"),
        fire_season=prop(props, "season"),
        ignition_date=prop(props, "start_date"),
        area={"measurement": area_ha, "unit": "ha"},
        distance_km=haversine_km(lat, lon, centre[0], centre[1]) if centre else None,
    )


def in_prone_area(lat: float, lon: float, collection) -> bool:
    """The layer is queried with a tiny box, so a returned non-polygon feature counts as a hit."""
    for feature in collection:
        if not isinstance(feature.geometry, (Polygon, MultiPolygon)):
            return True
        if point_in_polygon(lat, lon, feature.geometry):
            return True
    return False


class BushfireAnalyzer(HazardAnalyzer):
    """
    Bushfire risk from prone area, fire management zones and fire history.

    Fire management zones are optional: without a reader the zone signal
    is simply absent from the score.
    """

    KEY = "bushfire"
    SOURCES = ["Vicmap Bushfire Prone Area", "DEECA Fire History", "Fire Management Zones"]

    def __init__(self, source=None, geocoder=None, fire_zones: Optional[FireZoneReader] = None,
                 current_year: Optional[int] = None):
        super().__init__(source, geocoder)
        self.fire_zones = fire_zones
        self.current_year = current_year

    def minimal_report(self) -> BushfireReport:
        level = BushfireRiskLevel.LOW
        return BushfireReport(
            overall_risk=level,
            summary=generate_summary(level, False, None, 0, 0),
            recommendations=generate_recommendations(level, False, None, 0),
        )

    def _zones_near(self, lat: float, lon: float) -> List[FireManagementZone]:
        if self.fire_zones is None:
            return []
        return self.fire_zones.zones_near(lat, lon)

    def _analyze(self, lat: float, lon: float) -> BushfireReport:
        results = self.run_concurrently({
            "prone_area": lambda: self.fetch(lat, lon, DEFAULT_BUFFER_DEG, BUSHFIRE_PRONE_LAYER),
            "fire_history": lambda: self.fetch(
                lat, lon, FIRE_HISTORY_BUFFER_DEG, FIRE_HISTORY_LAYER,
                count=FIRE_HISTORY_COUNT, timeout=SOURCE_TIMEOUT),
        })

        prone = in_prone_area(lat, lon, results["prone_area"])
        fires = [fire_record(lat, lon, feature) for feature in results["fire_history"]]
        fires.sort(key=lambda f: (f.distance_km is None, f.distance_km or 0.0))

        zones = self._zones_near(lat, lon)
        zone = zones[0] if zones else None

        fires_within_5km = count_fires_within(fires, NEAR_FIRE_KM)
        fires_within_10km = count_fires_within(fires, AREA_FIRE_KM)
        recent_fires = count_recent_fires(fires, self.current_year)

        score = calculate_risk_score(prone, zone, fires_within_5km, recent_fires, fires_within_10km)
        level = determine_risk_level(score)
        closest = fires[0] if fires else None

        log.info(f"Bushfire: prone={prone}, {len(fires)} fire(s), score {score}, level {level.name}")

        return BushfireReport(
            overall_risk=level,
            risk_factors=BushfireRiskFactors(
                in_bushfire_prone_area=prone,
                distance_to_prone_area=None if prone or closest is None else closest.distance_km,
                historical_fires_nearby=fires_within_10km,
                recent_fires_nearby=recent_fires,
                fire_management_zone=zone,
                closest_historical_fire=closest,
            ),
            summary=generate_summary(level, prone, zone, fires_within_5km, recent_fires),
            recommendations=generate_recommendations(level, prone, zone, recent_fires),
            fire_history=fires,
        )
