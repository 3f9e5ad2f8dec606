"""
Road noise.

Road centrelines within 500 m are classified (freeway, highway, arterial
...) and given a reference level at 10 m, attenuated by 6 dB per doubling
of distance. Levels are combined as an energy sum. When a spatial store is
available, average SCATS traffic volume adds a logarithmic contribution.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from geo.coerce import prop
from geo.geometry import nearest_distance_m
from sources.spatial_store import SpatialStore
from sources.wfs import buffer_degrees
from hazards.base import HazardAnalyzer, Report
from hazards.config import NOISE_BUFFER_M, ROAD_LAYER
from hazards.levels import RiskLevel, round_half_up

log = logging.getLogger(__name__)

MAX_REPORTED_SOURCES = 5
BACKGROUND_DB = 35.0
REFERENCE_DISTANCE_M = 10.0
ATTENUATION_PER_DOUBLING_DB = 6.0

# Reference levels at 10 m, dB(A)
BASE_NOISE_DB = {
    "FREEWAY": 78,
    "HIGHWAY": 75,
    "ARTERIAL": 72,
    "MAIN_ROAD": 68,
    "COLLECTOR": 63,
    "LOCAL": 55,
    "SERVICE_ROAD": 52,
    "TRACK": 45,
    "UNKNOWN": 60,
}

# Traffic: 1,000 vehicles/day is the zero point, +10 dB per tenfold, capped
TRAFFIC_REFERENCE_VOLUME = 1000
TRAFFIC_CONTRIBUTION_CAP_DB = 15.0

DESCRIPTIONS = {
    RiskLevel.VERY_HIGH: "Very high noise levels expected due to proximity to major highway or freeway",
    RiskLevel.HIGH: "High noise levels expected from nearby arterial roads or highways",
    RiskLevel.MODERATE: "Moderate noise levels from nearby main roads or distant arterial roads",
    RiskLevel.LOW: "Low noise levels with only collector roads or distant main roads nearby",
    RiskLevel.MINIMAL: "Minimal road noise pollution - quiet residential area",
}


@dataclass
class NoiseSource(Report):
    road_name: str
    road_type: str
    classification: str
    distance_m: float
    estimated_noise_level: float


@dataclass
class NoiseReport(Report):
    noise_level: RiskLevel
    noise_sources: List[NoiseSource] = field(default_factory=list)
    estimated_average_noise_level: int = int(BACKGROUND_DB)
    traffic_volume_contribution: int = 0
    description: str = DESCRIPTIONS[RiskLevel.MINIMAL]


def classify_road(road_name: Optional[str], road_type: Optional[str], class_code: Optional[str]) -> str:
    name = (road_name or "").upper()
    kind = (road_type or "").upper()

    if "FREEWAY" in name or "FWY" in name or "FREEWAY" in kind:
        return "FREEWAY"
    if "HIGHWAY" in name or "HWY" in name or "HIGHWAY" in kind:
        return "HIGHWAY"
    if "ARTERIAL" in name or "ARTERIAL" in kind or class_code in ("1", "2"):
        return "ARTERIAL"
    if "MAIN" in name or "MAIN" in kind or "ROAD" in name or class_code == "3":
        return "MAIN_ROAD"
    if ("COLLECTOR" in kind or "DRIVE" in name or "AVENUE" in name or "BOULEVARD" in name
            or class_code == "4"):
        return "COLLECTOR"
    if "TRACK" in kind or "TRACK" in name:
        return "TRACK"
    if any(word in kind for word in ("STREET", "PLACE", "COURT", "CLOSE")):
        return "LOCAL"
    return "UNKNOWN"


def estimate_noise_level(classification: str, distance_m: float) -> float:
    ratio = max(distance_m, REFERENCE_DISTANCE_M) / REFERENCE_DISTANCE_M
    attenuation = ATTENUATION_PER_DOUBLING_DB * math.log2(ratio)
    return max(BASE_NOISE_DB[classification] - attenuation, BACKGROUND_DB)


def energy_sum_db(levels: List[float]) -> float:
    """Combine sound levels: 10 * log10(sum(10^(L/10)))."""
    if not levels:
        return BACKGROUND_DB
    return float(10 * np.log10(np.sum(np.power(10.0, np.asarray(levels) / 10))))


def traffic_contribution_db(average_volume: Optional[float]) -> float:
    if not average_volume or average_volume < TRAFFIC_REFERENCE_VOLUME:
        return 0.0
    return min(10 * math.log10(average_volume / TRAFFIC_REFERENCE_VOLUME), TRAFFIC_CONTRIBUTION_CAP_DB)


def determine_noise_level(sources: List[NoiseSource]) -> RiskLevel:
    def near(classification: str, limit: float) -> bool:
        return any(s.classification == classification and s.distance_m < limit for s in sources)

    if not sources:
        return RiskLevel.MINIMAL
    if near("FREEWAY", 50) or near("HIGHWAY", 50):
        return RiskLevel.VERY_HIGH
    if near("ARTERIAL", 100) or near("HIGHWAY", 200):
        return RiskLevel.HIGH
    if near("MAIN_ROAD", 100) or near("ARTERIAL", 300):
        return RiskLevel.MODERATE
    if any(s.classification == "COLLECTOR" for s in sources) or any(
            s.classification == "MAIN_ROAD" and s.distance_m > 100 for s in sources):
        return RiskLevel.LOW
    return RiskLevel.MINIMAL


def generate_description(level: RiskLevel, sources: List[NoiseSource]) -> str:
    """Tier sentence plus the loudest source (sources sorted loudest first)."""
    base = DESCRIPTIONS[level]
    if not sources:
        return base
    primary = sources[0]
    return (f"{base}. Primary source: {primary.road_name or 'Unnamed road'} "
            f"({round_half_up(primary.distance_m)}m away, ~{round_half_up(primary.estimated_noise_level)} dB(A))")


class NoiseAnalyzer(HazardAnalyzer):
    """Road noise estimate, optionally weighted by traffic volumes from the spatial store."""

    KEY = "noise"
    SOURCES = ["Vicmap Transport Road Lines", "SCATS Traffic Signal Volumes"]

    def __init__(self, source=None, geocoder=None, store: Optional[SpatialStore] = None,
                 buffer_m: float = NOISE_BUFFER_M):
        super().__init__(source, geocoder)
        self.store = store
        self.buffer_m = buffer_m

    def minimal_report(self) -> NoiseReport:
        return NoiseReport(noise_level=RiskLevel.MINIMAL)

    def _average_traffic_volume(self) -> Optional[float]:
        if self.store is None:
            return None
        sites = self.store.top_traffic_sites()
        if not sites:
            return None
        return float(np.mean([site.average_daily_volume for site in sites]))

    def _analyze(self, lat: float, lon: float) -> NoiseReport:
        collection = self.fetch(lat, lon, buffer_degrees(self.buffer_m), ROAD_LAYER)

        sources = []
        for feature in collection:
            distance = nearest_distance_m(lat, lon, feature.geometry)
            if not math.isfinite(distance):
                continue
            props = feature.properties
            classification = classify_road(
                prop(props, "road_name"), prop(props, "road_type"), prop(props, "class_code"))
            sources.append(NoiseSource(
                road_name=prop(props, "road_name") or "Unnamed Road",
                road_type=prop(props, "road_type") or "Unknown",
                classification=classification,
                distance_m=distance,
                estimated_noise_level=estimate_noise_level(classification, distance),
            ))

        sources.sort(key=lambda s: s.estimated_noise_level, reverse=True)

        contribution = traffic_contribution_db(self._average_traffic_volume())
        average = energy_sum_db([s.estimated_noise_level for s in sources])
        if contribution > 0:
            average = energy_sum_db([average, contribution])

        level = determine_noise_level(sources)

        log.info(f"Noise: {len(sources)} road(s), ~{round_half_up(average)} dB(A), level {level.name}")

        return NoiseReport(
            noise_level=level,
            noise_sources=sources[:MAX_REPORTED_SOURCES],
            estimated_average_noise_level=round_half_up(average),
            traffic_volume_contribution=round_half_up(contribution),
            description=generate_description(level, sources),
        )
