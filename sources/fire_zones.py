"""
Fire Management Zones - read from a local GeoJSON export.

The statewide zone layer is large and not served by the WFS, so it is
shipped as a file (plain or gzipped). Features are loaded once per reader
and filtered per query.
"""

import os
import gzip
import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, List, Optional

from geo.features import FeatureValidationError, GeographicFeature, parse_feature
from geo.geometry import filter_valid_coords, haversine_km, nearest_distance_m, point_in_polygon

log = logging.getLogger(__name__)

FIRE_ZONES_PATH = os.environ.get("RISK_FIRE_ZONES_PATH", "data/fire_management_zones.geojson.gz")

MAX_ZONE_DISTANCE_KM = 50.0
PREFILTER_DISTANCE_KM = 100.0  # skip zones whose first vertex is farther than this


@dataclass
class FireManagementZone:
    region_name: Optional[str]
    district_name: Optional[str]
    zone_type: Optional[str]
    zone_type_description: Optional[str]
    distance_km: float
    is_within_zone: bool

    def to_dict(self) -> Dict:
        return asdict(self)


class FireZoneReader:
    """Nearby fire management zones from a GeoJSON file."""

    def __init__(self, path: str = FIRE_ZONES_PATH):
        self.path = path
        self._features: Optional[List[GeographicFeature]] = None

    def _load(self) -> List[GeographicFeature]:
        if self._features is not None:
            return self._features

        if not Path(self.path).exists():
            log.warning(f"Fire management zone file not found: {self.path}")
            self._features = []
            return self._features

        opener = gzip.open if str(self.path).endswith(".gz") else open
        with opener(self.path, "rt", encoding="utf-8") as f:
            payload = json.load(f)

        features = []
        for i, raw in enumerate(payload.get("features", [])):
            feature = parse_feature(raw, i)
            if isinstance(feature, FeatureValidationError):
                continue
            if feature.geometry_type in ("Polygon", "MultiPolygon"):
                features.append(feature)

        log.info(f"Loaded {len(features)} fire management zones from {self.path}")
        self._features = features
        return features

    @staticmethod
    def _first_vertex(feature: GeographicFeature) -> Optional[tuple]:
        geometry = feature.geometry
        ring = geometry.outer_ring if feature.geometry_type == "Polygon" else (
            geometry.polygons[0].outer_ring if geometry.coordinates else ()
        )
        valid = filter_valid_coords(ring[:1])
        return valid[0] if valid else None

    def zones_near(self, lat: float, lon: float) -> List[FireManagementZone]:
        """
        Zones containing the point or within 50 km of it, closest first.

        A missing file yields an empty list.
        """
        zones = []
        for feature in self._load():
            first = self._first_vertex(feature)
            if first is not None and haversine_km(lat, lon, first[1], first[0]) > PREFILTER_DISTANCE_KM:
                continue

            within = point_in_polygon(lat, lon, feature.geometry)
            distance_km = 0.0 if within else nearest_distance_m(lat, lon, feature.geometry) / 1000
            if not within and distance_km > MAX_ZONE_DISTANCE_KM:
                continue

            props = feature.properties
            zones.append(FireManagementZone(
                region_name=props.get("REGION_NAME"),
                district_name=props.get("DISTRICT_NAME"),
                zone_type=None if props.get("ZONETYPE") is None else str(props.get("ZONETYPE")),
                zone_type_description=props.get("X_ZONETYPE"),
                distance_km=distance_km,
                is_within_zone=within,
            ))

        zones.sort(key=lambda z: z.distance_km)
        return zones


# Singleton instance
_fire_zone_reader: Optional[FireZoneReader] = None


def get_fire_zone_reader() -> FireZoneReader:
    """Get the singleton fire zone reader."""
    global _fire_zone_reader
    if _fire_zone_reader is None:
        _fire_zone_reader = FireZoneReader()
    return _fire_zone_reader
