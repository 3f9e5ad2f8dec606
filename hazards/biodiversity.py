"""
Biodiversity sensitivity from Victorian Biodiversity Atlas records.

Fauna and flora observations within ~500 m are fetched together. Any record
puts the property in a biodiversity area; threatened flora or a large
number of records makes it highly sensitive.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from geo.coerce import prop
from hazards.base import HazardAnalyzer, Report
from hazards.config import BIODIVERSITY_BUFFER_DEG, FAUNA_LAYER, FLORA_LAYER

log = logging.getLogger(__name__)

THREATENED_MARKERS = ("endangered", "vulnerable", "rare")
HIGH_RECORD_COUNT = 20
MEDIUM_RECORD_COUNT = 5
SIGNIFICANT_NATIVE_COUNT = 5

NO_RECORDS_SUMMARY = "No significant biodiversity records found in the immediate area."


class SensitivityLevel(Enum):
    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass
class FaunaRecord(Report):
    record_id: Optional[str]
    location_description: Optional[str]
    scientific_name: Optional[str]
    common_name: Optional[str]
    taxon_type: Optional[str]


@dataclass
class FloraRecord(Report):
    record_id: Optional[str]
    scientific_name: Optional[str]
    common_name: Optional[str]
    location_description: Optional[str]
    origin: Optional[str]
    victorian_life_category: Optional[str]

    @property
    def is_threatened(self) -> bool:
        category = (self.victorian_life_category or "").lower()
        return any(marker in category for marker in THREATENED_MARKERS)

    @property
    def is_native(self) -> bool:
        return "native" in (self.origin or "").lower()


@dataclass
class BiodiversityReport(Report):
    is_in_biodiversity_overlay: bool = False
    sensitivity_level: SensitivityLevel = SensitivityLevel.NONE
    distance_to_nearest_habitat: Optional[float] = None
    summary: str = NO_RECORDS_SUMMARY
    alerts: List[str] = field(default_factory=list)


def determine_sensitivity_level(flora: List[FloraRecord], fauna: List[FaunaRecord]) -> SensitivityLevel:
    total = len(flora) + len(fauna)
    if total == 0:
        return SensitivityLevel.NONE
    if any(f.is_threatened for f in flora) or total > HIGH_RECORD_COUNT:
        return SensitivityLevel.HIGH
    if any(f.is_native for f in flora) or total > MEDIUM_RECORD_COUNT:
        return SensitivityLevel.MEDIUM
    return SensitivityLevel.LOW


def generate_summary(flora: List[FloraRecord], fauna: List[FaunaRecord], level: SensitivityLevel) -> str:
    if not flora and not fauna:
        return NO_RECORDS_SUMMARY

    parts = []
    if flora:
        parts.append(f"{len({f.common_name for f in flora})} plant species")
    if fauna:
        parts.append(f"{len({f.common_name for f in fauna})} animal species")
    species = " and ".join(parts)

    if level == SensitivityLevel.HIGH:
        return (f"High biodiversity area with {species} recorded nearby. "
                "May include protected or threatened species.")
    if level == SensitivityLevel.MEDIUM:
        return f"Moderate biodiversity with {species} recorded in the vicinity."
    return f"{species} recorded in the area."


def generate_alerts(flora: List[FloraRecord], fauna: List[FaunaRecord], level: SensitivityLevel) -> List[str]:
    alerts = []

    if any(f.is_threatened for f in flora):
        alerts.append("Threatened plant species recorded nearby. Tree removal or vegetation clearing may "
                      "require permits from DEECA.")

    if sum(1 for f in flora if f.is_native) > SIGNIFICANT_NATIVE_COUNT:
        alerts.append("Significant native vegetation in area. Native vegetation clearing requires assessment "
                      "under Victoria's native vegetation regulations.")

    if level == SensitivityLevel.HIGH:
        alerts.append("High biodiversity sensitivity area. Development may trigger referral to "
                      "environmental authorities.")

    if flora or fauna:
        alerts.append("Check if property is affected by Environmental Significance Overlay (ESO) or "
                      "Vegetation Protection Overlay (VPO).")

    return alerts


class BiodiversityAnalyzer(HazardAnalyzer):
    KEY = "biodiversity"
    SOURCES = ["Victorian Biodiversity Atlas"]

    def minimal_report(self) -> BiodiversityReport:
        return BiodiversityReport()

    def _analyze(self, lat: float, lon: float) -> BiodiversityReport:
        results = self.run_concurrently({
            "fauna": lambda: self.fetch(lat, lon, BIODIVERSITY_BUFFER_DEG, FAUNA_LAYER),
            "flora": lambda: self.fetch(lat, lon, BIODIVERSITY_BUFFER_DEG, FLORA_LAYER),
        })

        fauna = [
            FaunaRecord(
                record_id=prop(f.properties, "record_id"),
                location_description=prop(f.properties, "locn_desc"),
                scientific_name=prop(f.properties, "sci_name"),
                common_name=prop(f.properties, "comm_name"),
                taxon_type=prop(f.properties, "taxon_type"),
            )
            for f in results["fauna"]
        ]
        flora = [
            FloraRecord(
                record_id=prop(f.properties, "record_id"),
                scientific_name=prop(f.properties, "sci_name"),
                common_name=prop(f.properties, "comm_name"),
                location_description=prop(f.properties, "locn_desc"),
                origin=prop(f.properties, "origin"),
                victorian_life_category=prop(f.properties, "vic_lf"),
            )
            for f in results["flora"]
        ]

        level = determine_sensitivity_level(flora, fauna)
        has_records = bool(flora or fauna)

        log.info(f"Biodiversity: {len(fauna)} fauna, {len(flora)} flora record(s), sensitivity {level.name}")

        return BiodiversityReport(
            is_in_biodiversity_overlay=has_records,
            sensitivity_level=level,
            # Records come from the search box itself, so habitat is "here"
            distance_to_nearest_habitat=0.0 if has_records else None,
            summary=generate_summary(flora, fauna, level),
            alerts=generate_alerts(flora, fauna, level),
        )
