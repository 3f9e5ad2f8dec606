"""
Sewer connection likelihood.

Uses sewerage pipelines loaded into the local spatial store (see
tools/load_spatial_store.py) to guess whether a property is connected to
reticulated sewer or likely on a septic system.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sources.spatial_store import PipelineMatch, SpatialStore
from hazards.base import HazardAnalyzer, Report

log = logging.getLogger(__name__)

SEARCH_RADIUS_KM = 5.0
DIRECT_CONNECTION_M = 50.0
SEPTIC_THRESHOLD_M = 200.0
ACTIVE_STATUSES = ("in", "active")


class ConnectionType(Enum):
    DIRECT = "direct"
    SEPTIC = "septic"
    UNKNOWN = "unknown"


@dataclass
class SewerReport(Report):
    is_connected: bool = False
    connection_type: ConnectionType = ConnectionType.UNKNOWN
    nearest_pipeline: Optional[PipelineMatch] = None
    distance_to_nearest_pipeline: Optional[float] = None
    nearby_pipeline_count: int = 0
    confidence: int = 0


def is_active(status: Optional[str]) -> bool:
    return (status or "").strip().lower() in ACTIVE_STATUSES


def determine_connection_type(distance_m: float, status: Optional[str]) -> ConnectionType:
    if distance_m <= DIRECT_CONNECTION_M and is_active(status):
        return ConnectionType.DIRECT
    if distance_m > SEPTIC_THRESHOLD_M:
        return ConnectionType.SEPTIC
    return ConnectionType.UNKNOWN


def calculate_confidence(distance_m: float, status: Optional[str], pipe_width: Optional[float],
                         nearby_count: int) -> int:
    """
    Confidence (0-100) in the connection assessment.

    Starts at 50, then adjusts for distance (+40 .. -20), pipeline status
    (+25 / -15), infrastructure density (up to +15) and pipe width (up to +10).
    """
    confidence = 50

    if distance_m <= 25:
        confidence += 40
    elif distance_m <= 50:
        confidence += 30
    elif distance_m <= 100:
        confidence += 20
    elif distance_m <= 200:
        confidence += 10
    else:
        confidence -= 20

    confidence += 25 if is_active(status) else -15

    if nearby_count >= 5:
        confidence += 15
    elif nearby_count >= 3:
        confidence += 10
    elif nearby_count >= 1:
        confidence += 5

    if pipe_width is not None and pipe_width >= 300:
        confidence += 10
    elif pipe_width is not None and pipe_width >= 150:
        confidence += 5

    return max(0, min(100, confidence))


def assess(pipelines: List[PipelineMatch]) -> SewerReport:
    """Build the report from pipelines sorted nearest first."""
    if not pipelines:
        return SewerReport()

    nearest = pipelines[0]
    distance = nearest.distance_m
    connection = determine_connection_type(distance, nearest.service_status)
    return SewerReport(
        is_connected=connection == ConnectionType.DIRECT,
        connection_type=connection,
        nearest_pipeline=nearest,
        distance_to_nearest_pipeline=distance,
        nearby_pipeline_count=len(pipelines),
        confidence=calculate_confidence(distance, nearest.service_status, nearest.pipe_width, len(pipelines)),
    )


class SewerAnalyzer(HazardAnalyzer):
    KEY = "sewer"
    SOURCES = ["Sewerage Pipelines (local store)"]

    def __init__(self, store: SpatialStore, source=None, geocoder=None, radius_km: float = SEARCH_RADIUS_KM):
        super().__init__(source, geocoder)
        self.store = store
        self.radius_km = radius_km

    def minimal_report(self) -> SewerReport:
        return SewerReport()

    def _analyze(self, lat: float, lon: float) -> SewerReport:
        pipelines = self.store.find_pipelines_within(lat, lon, radius_km=self.radius_km)
        report = assess(pipelines)
        log.info(f"Sewer: {len(pipelines)} pipeline(s) within {self.radius_km}km, "
                 f"{report.connection_type.name}, confidence {report.confidence}")
        return report
