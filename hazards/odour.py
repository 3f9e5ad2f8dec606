"""
Odour sources.

Landfills (Victorian Landfill Register), wastewater treatment plants
(Geoscience Australia) and EPA licensed premises whose activity is likely
to smell. Each source is optional: a failed fetch only removes that source
from the score.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geo.coerce import prop, prop_float
from geo.features import Point
from geo.geometry import haversine_km
from hazards.base import HazardAnalyzer, Report
from hazards.config import (
    EPA_PREMISES_BUFFER_DEG, EPA_PREMISES_LAYER, GA_FEATURE_COUNT, GA_OUTPUT_FORMAT, GA_WASTEWATER_URL,
    LANDFILL_BUFFER_DEG, LANDFILL_LAYER, SOURCE_TIMEOUT, WASTEWATER_BUFFER_DEG, WASTEWATER_LAYER,
    WASTEWATER_TIMEOUT,
)
from hazards.levels import (
    ODOUR_INDUSTRIAL_POINTS, ODOUR_LANDFILL_BANDS, ODOUR_LANDFILL_BEYOND, ODOUR_LANDFILLS_WITHIN_10KM,
    ODOUR_TIERS, ODOUR_WASTEWATER_BANDS, ODOUR_WASTEWATER_WITHIN_10KM, RiskLevel, band_points,
    tier_for_score,
)

log = logging.getLogger(__name__)

LANDFILL_COUNT_KM = 10.0
WASTEWATER_COUNT_KM = 10.0
INDUSTRIAL_COUNT_KM = 5.0

ODOUR_KEYWORDS = (
    "food", "meat", "poultry", "abattoir", "rendering", "compost", "waste", "chemical",
    "manufacturing", "processing", "brewery", "winery", "distillery", "dairy", "feedlot",
    "piggery", "recycling", "sewage", "treatment",
)

LEVEL_WORDS = {
    RiskLevel.MINIMAL: "minimal",
    RiskLevel.LOW: "low",
    RiskLevel.MODERATE: "moderate",
    RiskLevel.HIGH: "high",
    RiskLevel.VERY_HIGH: "very high",
}


@dataclass
class Landfill(Report):
    landfill_name: Optional[str]
    operating_status: Optional[str]
    address: Optional[str]
    suburb: Optional[str]
    council: Optional[str]
    distance_km: float


@dataclass
class WastewaterPlant(Report):
    facility_name: Optional[str]
    facility_type: Optional[str]
    operator: Optional[str]
    capacity: Optional[str]
    status: Optional[str]
    state: Optional[str]
    distance_km: float


@dataclass
class IndustrialFacility(Report):
    licence_number: Optional[str]
    place_or_premises: Optional[str]
    premises_address: Optional[str]
    suburb: Optional[str]
    permission_activity: Optional[str]
    status: Optional[str]
    distance_km: float


@dataclass
class OdourSources(Report):
    closest_landfill: Optional[Landfill] = None
    closest_wastewater_plant: Optional[WastewaterPlant] = None
    closest_industrial_facility: Optional[IndustrialFacility] = None
    landfills_within_10km: int = 0
    wastewater_plants_within_10km: int = 0
    industrial_facilities_within_5km: int = 0


@dataclass
class OdourReport(Report):
    overall_level: RiskLevel
    odour_sources: OdourSources = field(default_factory=OdourSources)
    summary: str = ""
    considerations: List[str] = field(default_factory=list)
    landfills: List[Landfill] = field(default_factory=list)
    wastewater_plants: List[WastewaterPlant] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALISATION
# ═══════════════════════════════════════════════════════════════════════════════

def _point_distance_km(lat: float, lon: float, feature, props=None) -> Optional[float]:
    """Distance to a point feature, preferring latitude/longitude properties when present."""
    props = props or {}
    f_lat = prop_float(props, "latitude")
    f_lon = prop_float(props, "longitude")
    if f_lat is None or f_lon is None:
        if not isinstance(feature.geometry, Point):
            return None
        f_lat, f_lon = feature.geometry.lat, feature.geometry.lon
    return haversine_km(lat, lon, f_lat, f_lon)


def is_odour_related(activity: Optional[str], premises: Optional[str]) -> bool:
    text = f"{activity or ''} {premises or ''}".lower()
    return any(keyword in text for keyword in ODOUR_KEYWORDS)


def landfill_record(lat: float, lon: float, feature) -> Optional[Landfill]:
    props = feature.properties
    distance = _point_distance_km(lat, lon, feature, props)
    if distance is None:
        return None
    return Landfill(
        landfill_name=prop(props, "site_name"),
        operating_status=prop(props, "operating_status"),
        address=prop(props, "address"),
        suburb=prop(props, "suburb"),
        council=prop(props, "council"),
        distance_km=distance,
    )


def wastewater_record(lat: float, lon: float, feature) -> Optional[WastewaterPlant]:
    distance = _point_distance_km(lat, lon, feature)
    if distance is None:
        return None
    props = feature.properties
    return WastewaterPlant(
        facility_name=prop(props, "facility_name"),
        facility_type=prop(props, "facility_type"),
        operator=prop(props, "operator"),
        capacity=prop(props, "capacity"),
        status=prop(props, "status"),
        state=prop(props, "state"),
        distance_km=distance,
    )


def industrial_record(lat: float, lon: float, feature) -> Optional[IndustrialFacility]:
    props = feature.properties
    activity = prop(props, "permission_activity")
    premises = prop(props, "place_or_premises")
    if not is_odour_related(activity, premises):
        return None
    distance = _point_distance_km(lat, lon, feature)
    if distance is None:
        return None
    return IndustrialFacility(
        licence_number=prop(props, "licence_number"),
        place_or_premises=premises,
        premises_address=prop(props, "premises_address"),
        suburb=prop(props, "suburb"),
        permission_activity=activity,
        status=prop(props, "status"),
        distance_km=distance,
    )


def _records(lat: float, lon: float, collection, build) -> list:
    if collection is None:
        return []
    records = [build(lat, lon, feature) for feature in collection]
    return sorted((r for r in records if r is not None), key=lambda r: r.distance_km)


# ═══════════════════════════════════════════════════════════════════════════════
# SCORING AND NARRATIVE
# ═══════════════════════════════════════════════════════════════════════════════

def summarise_sources(landfills: List[Landfill], plants: List[WastewaterPlant],
                      industrial: List[IndustrialFacility]) -> OdourSources:
    return OdourSources(
        closest_landfill=landfills[0] if landfills else None,
        closest_wastewater_plant=plants[0] if plants else None,
        closest_industrial_facility=industrial[0] if industrial else None,
        landfills_within_10km=sum(1 for l in landfills if l.distance_km <= LANDFILL_COUNT_KM),
        wastewater_plants_within_10km=sum(1 for p in plants if p.distance_km <= WASTEWATER_COUNT_KM),
        industrial_facilities_within_5km=sum(1 for f in industrial if f.distance_km <= INDUSTRIAL_COUNT_KM),
    )


def calculate_odour_score(sources: OdourSources) -> float:
    score = 0.0
    if sources.closest_landfill is not None:
        score += band_points(sources.closest_landfill.distance_km, ODOUR_LANDFILL_BANDS, ODOUR_LANDFILL_BEYOND)
    if sources.closest_wastewater_plant is not None:
        score += band_points(sources.closest_wastewater_plant.distance_km, ODOUR_WASTEWATER_BANDS)
    score += ODOUR_LANDFILLS_WITHIN_10KM.points(sources.landfills_within_10km)
    score += ODOUR_WASTEWATER_WITHIN_10KM.points(sources.wastewater_plants_within_10km)
    score += sources.industrial_facilities_within_5km * ODOUR_INDUSTRIAL_POINTS
    return score


def determine_odour_level(score: float) -> RiskLevel:
    return tier_for_score(score, ODOUR_TIERS, RiskLevel.MINIMAL)


def generate_summary(level: RiskLevel, sources: OdourSources) -> str:
    parts = [f"This location has {LEVEL_WORDS[level]} odour levels."]

    landfill = sources.closest_landfill
    if landfill is not None:
        parts.append(f"The nearest landfill ({landfill.landfill_name or 'Unknown'}) is "
                     f"{landfill.distance_km:.1f}km away.")
        if landfill.distance_km <= 2:
            parts.append("At this distance, odour from the landfill may be noticeable, especially on hot days "
                         "or with certain wind conditions.")
        elif landfill.distance_km <= 5:
            parts.append("Occasional odour from the landfill may be detected under certain wind conditions.")

    plant = sources.closest_wastewater_plant
    if plant is not None:
        parts.append(f"The nearest wastewater treatment plant is {plant.distance_km:.1f}km away.")
        if plant.distance_km <= 2:
            parts.append("Odour from wastewater treatment may occasionally be noticeable.")

    facility = sources.closest_industrial_facility
    if facility is not None:
        parts.append(f"The nearest odour-emitting industrial facility is {facility.distance_km:.1f}km away "
                     f"({facility.permission_activity}).")

    if sources.landfills_within_10km > 1:
        parts.append(f"There are {sources.landfills_within_10km} landfills within 10km of the property.")

    if sources.industrial_facilities_within_5km > 0:
        parts.append(f"There are {sources.industrial_facilities_within_5km} odour-emitting industrial "
                     "facilities within 5km.")

    if landfill is None and plant is None and facility is None:
        parts.append("No significant odour sources were identified nearby.")

    return " ".join(parts)


def generate_considerations(level: RiskLevel, sources: OdourSources) -> List[str]:
    considerations = []

    if level in (RiskLevel.VERY_HIGH, RiskLevel.HIGH):
        considerations.append("Consider the property's location relative to prevailing winds")
        considerations.append("Visit the property on different days and times, especially during hot weather")
        considerations.append("Speak with neighbors about their experience with odours")
        considerations.append("Check EPA Victoria records for odour complaints in the area")

    if sources.closest_landfill is not None and sources.closest_landfill.distance_km <= 5:
        considerations.append("Review the landfill's operating hours and EPA license conditions")
        considerations.append("Check if the landfill has an odour management plan")
        considerations.append("Consider air conditioning to minimize the need to open windows")

    if sources.closest_wastewater_plant is not None and sources.closest_wastewater_plant.distance_km <= 5:
        considerations.append("Review the wastewater treatment plant's odour management practices")
        considerations.append("Check EPA Victoria for any complaints or enforcement actions")

    if level in (RiskLevel.MODERATE, RiskLevel.LOW):
        considerations.append("Be aware that odour intensity can vary seasonally")
        considerations.append("Hot, still days can increase odour intensity from distant sources")

    if level == RiskLevel.MINIMAL:
        considerations.append("Odour sources are distant - minimal impact expected")

    considerations.append("Visit EPA Victoria's website for information on odour management in your area")
    return considerations


class OdourAnalyzer(HazardAnalyzer):
    KEY = "odour"
    SOURCES = ["Victorian Landfill Register", "GA Wastewater Treatment Facilities", "EPA Licensed Premises"]

    def __init__(self, source=None, geocoder=None, wastewater_url: str = GA_WASTEWATER_URL):
        super().__init__(source, geocoder)
        self.wastewater_url = wastewater_url

    def minimal_report(self) -> OdourReport:
        sources = OdourSources()
        return OdourReport(
            overall_level=RiskLevel.MINIMAL,
            odour_sources=sources,
            summary=generate_summary(RiskLevel.MINIMAL, sources),
            considerations=generate_considerations(RiskLevel.MINIMAL, sources),
        )

    def _analyze(self, lat: float, lon: float) -> OdourReport:
        results = self.run_concurrently({
            "landfills": lambda: self.fetch(
                lat, lon, LANDFILL_BUFFER_DEG, LANDFILL_LAYER, timeout=SOURCE_TIMEOUT),
            "wastewater": lambda: self.fetch(
                lat, lon, WASTEWATER_BUFFER_DEG, WASTEWATER_LAYER, url=self.wastewater_url,
                count=GA_FEATURE_COUNT, timeout=WASTEWATER_TIMEOUT, output_format=GA_OUTPUT_FORMAT),
            "epa_premises": lambda: self.fetch(
                lat, lon, EPA_PREMISES_BUFFER_DEG, EPA_PREMISES_LAYER, timeout=SOURCE_TIMEOUT),
        }, settle=True)

        landfills = _records(lat, lon, results["landfills"], landfill_record)
        plants = _records(lat, lon, results["wastewater"], wastewater_record)
        industrial = _records(lat, lon, results["epa_premises"], industrial_record)

        sources = summarise_sources(landfills, plants, industrial)
        score = calculate_odour_score(sources)
        level = determine_odour_level(score)

        log.info(f"Odour: {len(landfills)} landfill(s), {len(plants)} plant(s), "
                 f"{len(industrial)} facility(ies), score {score}, level {level.name}")

        return OdourReport(
            overall_level=level,
            odour_sources=sources,
            summary=generate_summary(level, sources),
            considerations=generate_considerations(level, sources),
            landfills=landfills,
            wastewater_plants=plants,
        )
