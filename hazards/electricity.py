"""
Electricity infrastructure.

Energy facilities (Vicmap) and high-voltage transmission lines (Geoscience
Australia) are fetched together and assessed for:
- access quality (substations and facilities nearby)
- transmission line risk (proximity and voltage)
- EMF exposure
- network redundancy score (0-100)

From those, an overall impact level, alerts, a description and
recommendations are derived.
"""

import math
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from geo.coerce import prop, prop_float
from geo.features import MultiPolygon, Point, Polygon
from geo.geometry import filter_valid_coords, haversine_km, nearest_distance_m
from hazards.base import HazardAnalyzer, Report
from hazards.config import (
    ENERGY_FACILITIES_BUFFER_DEG, ENERGY_FACILITIES_LAYER, GA_ELECTRICITY_URL, GA_FEATURE_COUNT,
    GA_OUTPUT_FORMAT, TRANSMISSION_LINES_BUFFER_DEG, TRANSMISSION_LINES_LAYER,
)
from hazards.levels import ImpactLevel, RiskLevel, round_half_up

log = logging.getLogger(__name__)

HIGH_VOLTAGE_KV = 220
MEDIUM_VOLTAGE_KV = 66


class AccessLevel(Enum):
    EXCELLENT = 4
    GOOD = 3
    ADEQUATE = 2
    LIMITED = 1


class EMFExposure(Enum):
    HIGH = 3
    MODERATE = 2
    LOW = 1
    NEGLIGIBLE = 0


@dataclass
class EnergyFacility(Report):
    facility_id: Optional[str]
    feature_type: Optional[str]
    feature_sub_type: Optional[str]
    voltage: Optional[str]
    capacity: Optional[str]
    owner: Optional[str]
    status: Optional[str]
    distance_km: Optional[float]

    @property
    def is_substation(self) -> bool:
        return ("substation" in (self.feature_type or "").lower()
                or "substation" in (self.feature_sub_type or "").lower())


@dataclass
class TransmissionLine(Report):
    line_id: Optional[str]
    name: Optional[str]
    description: Optional[str]
    feature_type: Optional[str]
    line_class: Optional[str]
    operational_status: Optional[str]
    state: Optional[str]
    capacity_kv: Optional[float]
    length_m: Optional[float]
    distance_m: Optional[float]


@dataclass
class ElectricityAlert(Report):
    type: str  # "note" or "risk"
    message: str


@dataclass
class ElectricityReport(Report):
    is_connected_to_grid: bool = False
    access_level: AccessLevel = AccessLevel.LIMITED
    has_reliable_access: bool = False
    facility_count: int = 0
    nearest_substation: Optional[EnergyFacility] = None
    nearest_transmission_line: Optional[TransmissionLine] = None
    distance_to_nearest_transmission_line: Optional[float] = None
    distance_to_nearest_facility: Optional[float] = None
    transmission_line_risk: RiskLevel = RiskLevel.MINIMAL
    emf_exposure: EMFExposure = EMFExposure.NEGLIGIBLE
    network_redundancy: int = 0
    impact_level: ImpactLevel = ImpactLevel.NONE
    alerts: List[ElectricityAlert] = field(default_factory=list)
    description: str = ""
    recommendations: List[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALISATION
# ═══════════════════════════════════════════════════════════════════════════════

def facility_distance_km(lat: float, lon: float, geometry) -> Optional[float]:
    """Distance to a point facility, or to the first vertex of a site polygon."""
    if isinstance(geometry, Point):
        return haversine_km(lat, lon, geometry.lat, geometry.lon)
    if isinstance(geometry, Polygon):
        ring = geometry.outer_ring
    elif isinstance(geometry, MultiPolygon) and geometry.coordinates:
        ring = geometry.polygons[0].outer_ring
    else:
        return None
    first = filter_valid_coords(ring[:1])
    return haversine_km(lat, lon, first[0][1], first[0][0]) if first else None


def facility_record(lat: float, lon: float, feature) -> EnergyFacility:
    props = feature.properties
    return EnergyFacility(
        facility_id=prop(props, "asset_id", "pfi"),
        feature_type=prop(props, "feature_type"),
        feature_sub_type=prop(props, "feature_sub_type"),
        voltage=prop(props, "voltage"),
        capacity=prop(props, "capacity"),
        owner=prop(props, "owner"),
        status=prop(props, "status"),
        distance_km=facility_distance_km(lat, lon, feature.geometry),
    )


def transmission_line_record(lat: float, lon: float, feature) -> TransmissionLine:
    props = feature.properties
    distance = nearest_distance_m(lat, lon, feature.geometry)
    return TransmissionLine(
        line_id=prop(props, "GmlID", "OBJECTID"),
        name=prop(props, "TRANSMISSIONLINE_NAME"),
        description=prop(props, "DESCRIPTION"),
        feature_type=prop(props, "FEATURETYPE"),
        line_class=prop(props, "CLASS"),
        operational_status=prop(props, "OPERATIONALSTATUS"),
        state=prop(props, "STATE"),
        capacity_kv=prop_float(props, "CAPACITYKV"),
        length_m=prop_float(props, "LENGTH_M"),
        distance_m=distance if math.isfinite(distance) else None,
    )


def _by_distance(records: list, attr: str) -> list:
    return sorted(records, key=lambda r: (getattr(r, attr) is None, getattr(r, attr) or 0.0))


# ═══════════════════════════════════════════════════════════════════════════════
# ASSESSMENTS
# ═══════════════════════════════════════════════════════════════════════════════

def nearest_substation(facilities: List[EnergyFacility]) -> Optional[EnergyFacility]:
    candidates = [f for f in facilities if f.is_substation and f.distance_km is not None]
    return min(candidates, key=lambda f: f.distance_km) if candidates else None


def nearest_line(lines: List[TransmissionLine]) -> Optional[TransmissionLine]:
    candidates = [l for l in lines if l.distance_m is not None]
    return min(candidates, key=lambda l: l.distance_m) if candidates else None


def assess_access(facilities: List[EnergyFacility]) -> AccessLevel:
    """
    EXCELLENT: substation within 500 m, or two or more facilities within 1 km
    GOOD: substation within 1 km, or any facility within 2 km
    ADEQUATE: any facility within 5 km
    """
    if not facilities:
        return AccessLevel.LIMITED

    substation = nearest_substation(facilities)
    substation_km = substation.distance_km if substation else None

    def within(km: float) -> int:
        return sum(1 for f in facilities if f.distance_km is not None and f.distance_km <= km)

    if (substation_km is not None and substation_km <= 0.5) or within(1) >= 2:
        return AccessLevel.EXCELLENT
    if (substation_km is not None and substation_km <= 1) or within(2) >= 1:
        return AccessLevel.GOOD
    if within(5) >= 1:
        return AccessLevel.ADEQUATE
    return AccessLevel.LIMITED


def assess_transmission_line_risk(lines: List[TransmissionLine]) -> RiskLevel:
    line = nearest_line(lines)
    if line is None:
        return RiskLevel.MINIMAL

    distance = line.distance_m
    high_voltage = line.capacity_kv is not None and line.capacity_kv > HIGH_VOLTAGE_KV

    if high_voltage and distance < 30:
        return RiskLevel.VERY_HIGH
    if (high_voltage and distance < 100) or distance < 30:
        return RiskLevel.HIGH
    if distance < 100:
        return RiskLevel.MODERATE
    if distance <= 500:
        return RiskLevel.LOW
    return RiskLevel.MINIMAL


def calculate_emf_exposure(lines: List[TransmissionLine]) -> EMFExposure:
    """Exposure from the line with the highest voltage-to-distance ratio."""
    worst = None
    worst_impact = 0.0
    for line in lines:
        if line.distance_m is None or line.distance_m <= 0:
            continue
        impact = (line.capacity_kv or 0) / line.distance_m
        if impact > worst_impact:
            worst, worst_impact = line, impact

    if worst is None:
        return EMFExposure.NEGLIGIBLE

    voltage = worst.capacity_kv or 0
    distance = worst.distance_m
    if voltage > HIGH_VOLTAGE_KV and distance <= 50:
        return EMFExposure.HIGH
    if (voltage > HIGH_VOLTAGE_KV and distance <= 100) or (voltage > MEDIUM_VOLTAGE_KV and distance <= 50):
        return EMFExposure.MODERATE
    if distance <= 300:
        return EMFExposure.LOW
    return EMFExposure.NEGLIGIBLE


def calculate_network_redundancy(facilities: List[EnergyFacility], lines: List[TransmissionLine]) -> int:
    """
    Redundancy score 0-100.

    Facility count (up to 40), nearest facility distance (up to 30),
    distinct voltage levels (up to 20), transmission lines (up to 10).
    """
    score = 0

    count = len(facilities)
    if count == 1:
        score += 10
    elif count == 2:
        score += 25
    elif count >= 3:
        score += 40

    distances = [f.distance_km for f in facilities if f.distance_km is not None]
    if distances:
        nearest = min(distances)
        if nearest < 0.5:
            score += 30
        elif nearest < 1:
            score += 22
        elif nearest < 2:
            score += 15
        elif nearest < 5:
            score += 8

    voltages = {f.voltage for f in facilities if f.voltage}
    if len(voltages) == 1:
        score += 7
    elif len(voltages) == 2:
        score += 14
    elif len(voltages) >= 3:
        score += 20

    if len(lines) == 1:
        score += 5
    elif len(lines) >= 2:
        score += 10

    return max(0, min(100, score))


def determine_impact_level(line_risk: RiskLevel, emf: EMFExposure) -> ImpactLevel:
    if line_risk == RiskLevel.VERY_HIGH or emf == EMFExposure.HIGH:
        return ImpactLevel.HIGH
    if line_risk == RiskLevel.HIGH or emf == EMFExposure.MODERATE:
        return ImpactLevel.MODERATE
    if line_risk == RiskLevel.MODERATE or emf == EMFExposure.LOW:
        return ImpactLevel.LOW
    return ImpactLevel.NONE


# ═══════════════════════════════════════════════════════════════════════════════
# NARRATIVE
# ═══════════════════════════════════════════════════════════════════════════════

def _facilities_word(count: int) -> str:
    return "facility" if count == 1 else "facilities"


def _voltage_label(line: TransmissionLine) -> str:
    return f"({line.capacity_kv:g}kV) " if line.capacity_kv else ""


def generate_alerts(line_risk: RiskLevel, emf: EMFExposure, line: Optional[TransmissionLine],
                    substation: Optional[EnergyFacility], access: AccessLevel) -> List[ElectricityAlert]:
    alerts = []
    line_m = round_half_up(line.distance_m) if line is not None else None

    if line_risk == RiskLevel.VERY_HIGH:
        alerts.append(ElectricityAlert("risk", (
            f"High voltage transmission line within {line_m}m. Mandatory easement restrictions and building "
            "setbacks apply. Professional EMF assessment required.")))
    elif line_risk == RiskLevel.HIGH:
        alerts.append(ElectricityAlert("risk", (
            f"Transmission line within {line_m}m. Check easement restrictions and building height limits "
            "with electricity authority.")))
    elif line_risk == RiskLevel.MODERATE:
        alerts.append(ElectricityAlert("note", (
            f"Transmission infrastructure within {line_m}m. Consider visual impact and check planning overlays.")))

    if emf == EMFExposure.HIGH:
        alerts.append(ElectricityAlert("risk", (
            "High EMF exposure - property unsuitable for sensitive uses (childcare, schools) without "
            "mitigation. Disclosure requirements apply.")))
    elif emf == EMFExposure.MODERATE:
        alerts.append(ElectricityAlert("note", "Moderate EMF levels present. Assessment recommended for sensitive uses."))

    if access == AccessLevel.LIMITED:
        alerts.append(ElectricityAlert("note", (
            "Limited electricity infrastructure. Consult distributor for connection requirements and costs.")))
    elif access in (AccessLevel.EXCELLENT, AccessLevel.GOOD) and substation is not None:
        substation_m = substation.distance_km * 1000
        if substation_m < 500:
            alerts.append(ElectricityAlert("note", (
                f"Excellent electricity access - substation within {round_half_up(substation_m)}m. "
                "Suitable for high-demand uses.")))

    return alerts


def generate_description(access: AccessLevel, line_risk: RiskLevel, emf: EMFExposure, redundancy: int,
                         facility_count: int, substation: Optional[EnergyFacility],
                         line: Optional[TransmissionLine]) -> str:
    parts = []

    if access == AccessLevel.EXCELLENT:
        parts.append(f"Excellent electricity access with {facility_count} nearby energy "
                     f"{_facilities_word(facility_count)}")
    elif access == AccessLevel.GOOD:
        parts.append(f"Good electricity access with {facility_count} nearby energy "
                     f"{_facilities_word(facility_count)}")
    elif access == AccessLevel.ADEQUATE:
        parts.append(f"Adequate electricity access with {facility_count} "
                     f"{_facilities_word(facility_count)} in the area")
    else:
        parts.append("Limited electricity infrastructure in the immediate area")

    if substation is not None:
        parts.append(f"Nearest substation is {round_half_up(substation.distance_km * 1000)}m away")

    if redundancy >= 80:
        parts.append("Very high network redundancy ensures reliable power supply")
    elif redundancy >= 60:
        parts.append("High network redundancy provides good reliability")
    elif redundancy >= 40:
        parts.append("Moderate network redundancy")
    elif redundancy >= 20:
        parts.append("Limited network redundancy may affect reliability")

    if line is not None:
        distance = round_half_up(line.distance_m)
        voltage = _voltage_label(line)
        if line_risk in (RiskLevel.VERY_HIGH, RiskLevel.HIGH):
            parts.append(f"High voltage transmission line {voltage}at {distance}m poses property development constraints")
        elif line_risk == RiskLevel.MODERATE:
            parts.append(f"Transmission line {voltage}at {distance}m requires consideration for development")
        elif line_risk == RiskLevel.LOW:
            parts.append(f"Transmission infrastructure {voltage}at {distance}m has minimal impact")

    if emf == EMFExposure.HIGH:
        parts.append("HIGH EMF exposure - property unsuitable for sensitive uses without mitigation")
    elif emf == EMFExposure.MODERATE:
        parts.append("Moderate EMF exposure from nearby high voltage infrastructure")

    return ". ".join(parts) + "."


def generate_recommendations(access: AccessLevel, line_risk: RiskLevel, emf: EMFExposure, redundancy: int,
                             line: Optional[TransmissionLine]) -> List[str]:
    recommendations = []

    if access in (AccessLevel.EXCELLENT, AccessLevel.GOOD):
        recommendations.append("Property has excellent access to reliable electricity infrastructure")
        recommendations.append("Suitable for high electricity demand uses (commercial, industrial, data centers)")
    elif access == AccessLevel.ADEQUATE:
        recommendations.append("Adequate electricity infrastructure for residential and light commercial use")
        recommendations.append("Consult electricity distributor for high-demand developments")
    else:
        recommendations.append("Limited electricity infrastructure - consult distributor before purchase")
        recommendations.append("May require significant infrastructure upgrades for development")
        recommendations.append("Consider alternative energy sources (solar, battery storage)")

    if redundancy < 40:
        recommendations.append("Low network redundancy - consider backup power systems (UPS, generators)")
        recommendations.append("Property may experience more frequent or longer power outages")

    if line_risk == RiskLevel.VERY_HIGH:
        recommendations.append("CRITICAL: Very high voltage line proximity - mandatory easement restrictions")
        recommendations.append("Obtain easement documentation and building restrictions from electricity authority")
        recommendations.append("Property development severely constrained - building setbacks required")
        recommendations.append("Professional EMF assessment required before development or occupation")
        recommendations.append("May significantly impact property value and insurance premiums")
    elif line_risk == RiskLevel.HIGH:
        recommendations.append("High voltage transmission line nearby - check easement restrictions")
        recommendations.append("Consult electricity authority regarding building setbacks and height restrictions")
        recommendations.append("Consider EMF assessment for sensitive uses (childcare, healthcare)")
        recommendations.append("May affect property value and development potential")
    elif line_risk == RiskLevel.MODERATE:
        recommendations.append("Transmission line proximity requires consideration for development")
        recommendations.append("Check planning overlays for building restrictions")
        recommendations.append("Consider visual impact and noise from transmission lines")

    if emf == EMFExposure.HIGH:
        recommendations.append("HIGH EMF exposure - professional assessment mandatory before development")
        recommendations.append(
            "Property unsuitable for sensitive uses (childcare, schools, hospitals) without mitigation")
        recommendations.append("Consider EMF shielding for residential development (costly)")
        recommendations.append("Disclosure requirements - may affect marketability and value")
    elif emf == EMFExposure.MODERATE:
        recommendations.append("Moderate EMF levels - assessment recommended for sensitive uses")
        recommendations.append("Consider room placement away from transmission lines for habitable spaces")
    elif emf == EMFExposure.LOW:
        recommendations.append("EMF exposure within normal urban background levels")

    if line is not None and line.distance_m < 100:
        recommendations.append("Obtain transmission line easement documentation and survey plans")
        recommendations.append("Consult with electricity distributor (Powercor, AusNet, CitiPower, United Energy)")
        recommendations.append("Consider impact on property aesthetics and marketability")

    if access == AccessLevel.EXCELLENT and line_risk == RiskLevel.MINIMAL and redundancy >= 70:
        recommendations.append("Excellent electricity infrastructure with no significant constraints")
        recommendations.append("Property well-suited for any electricity-dependent development")

    return recommendations


# ═══════════════════════════════════════════════════════════════════════════════
# ORCHESTRATION
# ═══════════════════════════════════════════════════════════════════════════════

def analyze_infrastructure(facilities: List[EnergyFacility], lines: List[TransmissionLine]) -> ElectricityReport:
    """Assess already-normalised facilities and lines."""
    access = assess_access(facilities)
    line_risk = assess_transmission_line_risk(lines)
    emf = calculate_emf_exposure(lines)
    redundancy = calculate_network_redundancy(facilities, lines)
    substation = nearest_substation(facilities)
    line = nearest_line(lines)

    return ElectricityReport(
        is_connected_to_grid=access != AccessLevel.LIMITED,
        access_level=access,
        has_reliable_access=access in (AccessLevel.EXCELLENT, AccessLevel.GOOD),
        facility_count=len(facilities),
        nearest_substation=substation,
        nearest_transmission_line=line,
        distance_to_nearest_transmission_line=line.distance_m if line else None,
        distance_to_nearest_facility=substation.distance_km * 1000 if substation else None,
        transmission_line_risk=line_risk,
        emf_exposure=emf,
        network_redundancy=redundancy,
        impact_level=determine_impact_level(line_risk, emf),
        alerts=generate_alerts(line_risk, emf, line, substation, access),
        description=generate_description(access, line_risk, emf, redundancy, len(facilities), substation, line),
        recommendations=generate_recommendations(access, line_risk, emf, redundancy, line),
    )


class ElectricityAnalyzer(HazardAnalyzer):
    KEY = "electricity"
    SOURCES = ["Vicmap Energy Facilities", "GA Electricity Transmission Lines"]

    def __init__(self, source=None, geocoder=None, transmission_url: str = GA_ELECTRICITY_URL):
        super().__init__(source, geocoder)
        self.transmission_url = transmission_url

    def minimal_report(self) -> ElectricityReport:
        return analyze_infrastructure([], [])

    def _analyze(self, lat: float, lon: float) -> ElectricityReport:
        results = self.run_concurrently({
            "facilities": lambda: self.fetch(lat, lon, ENERGY_FACILITIES_BUFFER_DEG, ENERGY_FACILITIES_LAYER),
            "lines": lambda: self.fetch(
                lat, lon, TRANSMISSION_LINES_BUFFER_DEG, TRANSMISSION_LINES_LAYER, url=self.transmission_url,
                count=GA_FEATURE_COUNT, output_format=GA_OUTPUT_FORMAT),
        })

        facilities = _by_distance([facility_record(lat, lon, f) for f in results["facilities"]], "distance_km")
        lines = _by_distance([transmission_line_record(lat, lon, f) for f in results["lines"]], "distance_m")

        report = analyze_infrastructure(facilities, lines)

        log.info(f"Electricity: {len(facilities)} facility(ies), {len(lines)} line(s), "
                 f"access {report.access_level.name}, impact {report.impact_level.name}")
        return report
