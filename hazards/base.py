"""
Shared orchestration for hazard categories.

Every category follows the same path: fetch layer(s) around a point,
normalise features into records, classify, then narrate. HazardAnalyzer
owns the parts that do not change between categories: geocoding, the
top-level fallback to a minimal report, concurrent layer fetches, and the
overlay helpers used by the planning-overlay categories.
"""

import math
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from geo.coerce import prop
from geo.features import FeatureCollection, GeographicFeature
from geo.geometry import nearest_distance_m, point_in_polygon
from sources.geocoder import Address, Geocoder, get_geocoder
from sources.wfs import FeatureSourceClient, buffer_degrees, get_feature_source
from hazards.config import PLAN_OVERLAY_LAYER

log = logging.getLogger(__name__)


def _dict_factory(items) -> Dict:
    return {key: (value.name if isinstance(value, Enum) else value) for key, value in items}


class Report:
    """Mixin for report and record dataclasses. Enums serialise by name."""

    def to_dict(self) -> Dict:
        return asdict(self, dict_factory=_dict_factory)


# ═══════════════════════════════════════════════════════════════════════════════
# OVERLAY HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def locate(lat: float, lon: float, feature: GeographicFeature) -> Tuple[bool, Optional[float]]:
    """
    Position of a point relative to a feature.

    Returns:
        (inside, distance_m). Distance is 0 when inside and None when it
        cannot be computed (no usable geometry).
    """
    if point_in_polygon(lat, lon, feature.geometry):
        return True, 0.0
    distance = nearest_distance_m(lat, lon, feature.geometry)
    return False, (distance if math.isfinite(distance) else None)


def scheme_code(feature: GeographicFeature) -> str:
    return prop(feature.properties, "scheme_code") or ""


def zone_description(feature: GeographicFeature) -> str:
    return prop(feature.properties, "zone_description") or ""


def sort_by_proximity(records: Sequence, flag: str = "affects_property") -> List:
    """Affecting records first, then ascending distance, unknown distances last."""
    return sorted(
        records,
        key=lambda r: (not getattr(r, flag), r.distance_m is None, r.distance_m or 0.0),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# ANALYZER BASE
# ═══════════════════════════════════════════════════════════════════════════════

class HazardAnalyzer:
    """
    Base class for category orchestrators.

    Subclasses set KEY and SOURCES and implement `_analyze` and
    `minimal_report`. Callers use `analyze` or `analyze_address`, which
    never raise.
    """

    KEY = ""
    SOURCES: List[str] = []

    def __init__(self, source: Optional[FeatureSourceClient] = None, geocoder: Optional[Geocoder] = None):
        self.source = source or get_feature_source()
        self._geocoder = geocoder

    @property
    def geocoder(self) -> Geocoder:
        """Lazy-load the shared geocoder."""
        if self._geocoder is None:
            self._geocoder = get_geocoder()
        return self._geocoder

    def analyze_address(self, address: Address):
        try:
            location = self.geocoder.geocode(address)
        except Exception as e:
            log.error(f"{self.KEY}: geocoding '{address.to_query()}' failed: {e}")
            return self.minimal_report()
        if location is None:
            log.warning(f"{self.KEY}: could not geocode '{address.to_query()}', using minimal report")
            return self.minimal_report()
        return self.analyze(location.latitude, location.longitude)

    def analyze(self, lat: float, lon: float):
        """Run the category for a point. Failures map to the minimal report."""
        try:
            report = self._analyze(lat, lon)
        except Exception as e:
            log.error(f"{self.KEY} analysis failed at ({lat}, {lon}): {e}")
            return self.minimal_report()
        return report

    def _analyze(self, lat: float, lon: float):
        raise NotImplementedError

    def minimal_report(self):
        raise NotImplementedError

    # ── Fetch helpers ─────────────────────────────────────────────────────────

    def fetch(self, lat: float, lon: float, buffer_deg: float, type_name: str, **kwargs) -> FeatureCollection:
        return self.source.get_features(lat, lon, buffer_deg, type_name, **kwargs)

    def fetch_plan_overlays(self, lat: float, lon: float, buffer_m: float) -> FeatureCollection:
        return self.fetch(lat, lon, buffer_degrees(buffer_m), PLAN_OVERLAY_LAYER)

    def run_concurrently(self, tasks: Dict[str, Callable[[], Any]], settle: bool = False) -> Dict[str, Any]:
        """
        Run independent fetches on a thread pool.

        Args:
            tasks: name -> zero-argument callable
            settle: If True, a failing task yields None instead of raising

        Returns:
            name -> result
        """
        results: Dict[str, Any] = {}
        with ThreadPoolExecutor(max_workers=max(len(tasks), 1)) as executor:
            futures = {executor.submit(fn): name for name, fn in tasks.items()}

            for future in as_completed(futures, timeout=60):
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    if not settle:
                        raise
                    log.warning(f"{self.KEY}: {name} unavailable: {e}")
                    results[name] = None
        return results
