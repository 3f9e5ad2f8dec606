"""
Registered easements at the property.

Easement features from Vicmap Property are measured geodesically (length
for linear easements, area for parcels), then summarised into a primary
type, an impact level and title alerts.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geo.coerce import prop
from geo.features import LineString, MultiLineString, MultiPolygon, Polygon
from geo.geometry import area_m2, line_length_m
from hazards.base import HazardAnalyzer, Report
from hazards.config import DEFAULT_BUFFER_DEG, EASEMENT_LAYER
from hazards.levels import ImpactLevel

log = logging.getLogger(__name__)

MAX_FEATURES = 10
LINEAR = "Linear"
AREA_BASED = "Area-based"

STATUS_TEXT = {"A": "Active", "I": "Inactive"}

# Checked in priority order; first type with a matching keyword wins
PRIMARY_TYPE_KEYWORDS = (
    ("drainage", ("drainage", "drain")),
    ("sewerage", ("sewerage", "sewer")),
    ("access", ("access", "right of way", "area-based")),
    ("utility", ("utility", "service", "linear")),
)


@dataclass
class Measurement(Report):
    value: float
    unit: str   # "metres" or "square metres"
    type: str   # "length" or "area"


@dataclass
class Easement(Report):
    type: str
    measurement: Measurement
    status: str
    registered: Optional[str]
    description: str

    @property
    def is_active(self) -> bool:
        return "active" in self.status.lower() and "inactive" not in self.status.lower()


@dataclass
class EasementReport(Report):
    has_easement: bool = False
    type: Optional[str] = None
    location_description: Optional[str] = None
    impact_level: ImpactLevel = ImpactLevel.NONE
    alerts: List[str] = field(default_factory=list)
    easements: List[Easement] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALISATION
# ═══════════════════════════════════════════════════════════════════════════════

def status_text(raw: Optional[str]) -> str:
    if raw is None:
        return "Unknown"
    return STATUS_TEXT.get(raw.strip().upper(), raw)


def measure(geometry) -> Optional[Measurement]:
    """Length for lines, area for polygons, None for anything else."""
    if isinstance(geometry, (LineString, MultiLineString)):
        return Measurement(value=round(line_length_m(geometry), 2), unit="metres", type="length")
    if isinstance(geometry, (Polygon, MultiPolygon)):
        return Measurement(value=round(area_m2(geometry), 2), unit="square metres", type="area")
    return None


def describe_easement(status: str, easement_type: str, measurement: Measurement,
                      registered: Optional[str]) -> str:
    if measurement.type == "length":
        size = f"approximately {measurement.value:.0f} metres in length"
    else:
        size = f"covering roughly {measurement.value:.0f} square metres"
    when = f", recorded {registered}" if registered else ""
    return f"{status} {easement_type.lower()} easement, {size}{when}"


def easement_record(feature) -> Optional[Easement]:
    measurement = measure(feature.geometry)
    if measurement is None:
        log.warning(f"Skipping easement {feature.id}: unsupported geometry {feature.geometry_type}")
        return None

    props = feature.properties
    status = status_text(prop(props, "status"))
    easement_type = LINEAR if measurement.type == "length" else AREA_BASED
    created = prop(props, "ufi_created")
    registered = created[:10] if created else None

    return Easement(
        type=easement_type,
        measurement=measurement,
        status=status,
        registered=registered,
        description=describe_easement(status, easement_type, measurement, registered),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

def determine_primary_type(easements: List[Easement]) -> Optional[str]:
    if not easements:
        return None
    texts = [f"{e.type} {e.description}".lower() for e in easements]
    for primary, keywords in PRIMARY_TYPE_KEYWORDS:
        if any(keyword in text for text in texts for keyword in keywords):
            return primary
    return "unknown"


def determine_impact_level(easements: List[Easement], primary_type: Optional[str]) -> ImpactLevel:
    if not easements:
        return ImpactLevel.NONE
    has_active = any(e.is_active for e in easements)
    if has_active and primary_type in ("drainage", "sewerage"):
        return ImpactLevel.HIGH
    if has_active or len(easements) > 2:
        return ImpactLevel.MODERATE
    return ImpactLevel.LOW


def location_description(easements: List[Easement]) -> Optional[str]:
    if not easements:
        return None
    if len(easements) == 1:
        return easements[0].description
    return f"Property affected by {len(easements)} easements"


def generate_alerts(primary_type: Optional[str], impact: ImpactLevel, easements: List[Easement]) -> List[str]:
    alerts = []
    has_active = any(e.is_active for e in easements)

    if impact == ImpactLevel.HIGH:
        if primary_type == "drainage":
            alerts.append("Active drainage easement present - building restrictions apply. "
                          "Consult Melbourne Water before any construction.")
        elif primary_type == "sewerage":
            alerts.append("Active sewerage easement present - significant building restrictions. "
                          "Mandatory setbacks from sewer lines.")

    if impact == ImpactLevel.MODERATE:
        if has_active:
            alerts.append("Active easement may restrict building placement. "
                          "Check easement documentation and planning overlays.")
        if len(easements) > 2:
            alerts.append(f"Multiple easements ({len(easements)}) affect property. "
                          "Comprehensive site survey recommended.")

    if primary_type == "access":
        alerts.append("Access easement provides legal right of way. May affect privacy and property use.")

    if has_active and not alerts:
        alerts.append("Easement registered on title. Obtain easement documentation during conveyancing.")

    return alerts


class EasementAnalyzer(HazardAnalyzer):
    KEY = "easements"
    SOURCES = ["Vicmap Property Easements"]

    def minimal_report(self) -> EasementReport:
        return EasementReport()

    def _analyze(self, lat: float, lon: float) -> EasementReport:
        collection = self.fetch(lat, lon, DEFAULT_BUFFER_DEG, EASEMENT_LAYER)
        if not collection:
            log.info("Easements: none found")
            return self.minimal_report()

        if len(collection) > MAX_FEATURES:
            log.warning(f"Limiting easement processing to {MAX_FEATURES} features (found {len(collection)})")

        easements = [e for e in (easement_record(f) for f in list(collection)[:MAX_FEATURES]) if e is not None]
        if not easements:
            log.info("Easements: no measurable easement geometry")
            return self.minimal_report()

        primary_type = determine_primary_type(easements)
        impact = determine_impact_level(easements, primary_type)

        log.info(f"Easements: {len(easements)} easement(s), type {primary_type}, impact {impact.name}")

        return EasementReport(
            has_easement=True,
            type=primary_type,
            location_description=location_description(easements),
            impact_level=impact,
            alerts=generate_alerts(primary_type, impact, easements),
            easements=easements,
        )
