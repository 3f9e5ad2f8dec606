"""
Environmental Data Aggregator - runs every enabled category for one address.

Categories:
- Natural hazards: bushfire, flood, waterway, steep land, coastal
- Planning: neighbourhood character, heritage, easements
- Amenity: noise, odour, biodiversity
- Infrastructure: sewer, electricity

Categories are independent. They run sequentially by default, or on a
thread pool with parallel=True; the result is the same either way.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sources.fire_zones import FireZoneReader
from sources.geocoder import Address, Geocoder, get_geocoder
from sources.spatial_store import SpatialStore
from sources.wfs import FeatureSourceClient, get_feature_source
from hazards.base import HazardAnalyzer
from hazards.biodiversity import BiodiversityAnalyzer
from hazards.bushfire import BushfireAnalyzer
from hazards.character import CharacterAnalyzer
from hazards.coastal import CoastalAnalyzer
from hazards.config import ENABLED_CATEGORIES
from hazards.easements import EasementAnalyzer
from hazards.electricity import ElectricityAnalyzer
from hazards.flood import FloodAnalyzer
from hazards.heritage import HeritageAnalyzer
from hazards.noise import NoiseAnalyzer
from hazards.odour import OdourAnalyzer
from hazards.sewer import SewerAnalyzer
from hazards.steep_land import SteepLandAnalyzer
from hazards.waterway import WaterwayAnalyzer

log = logging.getLogger(__name__)

CATEGORY_TIMEOUT = 120


@dataclass
class EnvironmentalReport:
    """
    Composite report for one location.

    `categories` maps category key to its report, or None when the category
    failed outright. Categories that were not enabled are absent.
    """
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str] = None
    categories: Dict[str, Any] = field(default_factory=dict)

    # Metadata
    data_complete: bool = False
    data_sources: List[str] = field(default_factory=list)
    fetch_errors: List[str] = field(default_factory=list)

    def __getitem__(self, key: str):
        return self.categories[key]

    def __contains__(self, key: str) -> bool:
        return key in self.categories

    def to_dict(self) -> Dict:
        result: Dict[str, Any] = {
            key: (report.to_dict() if report is not None else None)
            for key, report in self.categories.items()
        }
        result.update({
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "data_sources": list(self.data_sources),
            "fetch_errors": list(self.fetch_errors),
            "data_complete": self.data_complete,
        })
        return result


class EnvironmentalDataAggregator:
    """
    Fans out to the category analyzers.

    Usage:
        aggregator = EnvironmentalDataAggregator()
        report = aggregator.fetch_all(Address("1 Spring St, Melbourne"))
        payload = report.to_dict()
    """

    def __init__(
        self,
        source: Optional[FeatureSourceClient] = None,
        geocoder: Optional[Geocoder] = None,
        store: Optional[SpatialStore] = None,
        fire_zones: Optional[FireZoneReader] = None,
        categories: Optional[List[str]] = None,
    ):
        self.source = source or get_feature_source()
        self._geocoder = geocoder
        self.store = store
        self.fire_zones = fire_zones
        self.categories = list(ENABLED_CATEGORIES if categories is None else categories)
        self._analyzers: Optional[Dict[str, HazardAnalyzer]] = None

    @property
    def geocoder(self) -> Geocoder:
        """Lazy-load the shared geocoder."""
        if self._geocoder is None:
            self._geocoder = get_geocoder()
        return self._geocoder

    @property
    def analyzers(self) -> Dict[str, HazardAnalyzer]:
        """Enabled analyzers, built on first use."""
        if self._analyzers is None:
            self._analyzers = self._build_analyzers()
        return self._analyzers

    def _build_analyzers(self) -> Dict[str, HazardAnalyzer]:
        src, geo = self.source, self._geocoder
        factories: Dict[str, Callable[[], HazardAnalyzer]] = {
            "bushfire": lambda: BushfireAnalyzer(src, geo, fire_zones=self.fire_zones),
            "flood": lambda: FloodAnalyzer(src, geo),
            "waterway": lambda: WaterwayAnalyzer(src, geo),
            "steep_land": lambda: SteepLandAnalyzer(src, geo),
            "character": lambda: CharacterAnalyzer(src, geo),
            "heritage": lambda: HeritageAnalyzer(src, geo),
            "coastal": lambda: CoastalAnalyzer(src, geo),
            "noise": lambda: NoiseAnalyzer(src, geo, store=self.store),
            "odour": lambda: OdourAnalyzer(src, geo),
            "biodiversity": lambda: BiodiversityAnalyzer(src, geo),
            "easements": lambda: EasementAnalyzer(src, geo),
            "electricity": lambda: ElectricityAnalyzer(src, geo),
        }
        if self.store is not None:
            factories["sewer"] = lambda: SewerAnalyzer(self.store, src, geo)

        analyzers = {}
        for key in self.categories:
            if key in factories:
                analyzers[key] = factories[key]()
            elif key == "sewer":
                log.warning("Sewer category enabled but no spatial store is open, skipping")
            else:
                log.warning(f"Unknown category '{key}', skipping")
        return analyzers

    # ── Entry points ──────────────────────────────────────────────────────────

    def fetch_all(self, address: Address, parallel: bool = False) -> EnvironmentalReport:
        """
        Geocode an address, then run every enabled category.

        When the address cannot be geocoded each category contributes its
        minimal report and no feature service is queried.
        """
        try:
            location = self.geocoder.geocode(address)
            error = f"geocode: no match for '{address.to_query()}'"
        except Exception as e:
            log.error(f"Geocoding '{address.to_query()}' failed: {e}")
            location = None
            error = f"geocode: {str(e)}"

        if location is None:
            log.warning(f"Could not geocode '{address.to_query()}', using minimal reports")
            result = EnvironmentalReport(latitude=None, longitude=None, address=address.to_query())
            for key, analyzer in self.analyzers.items():
                result.categories[key] = analyzer.minimal_report()
            result.fetch_errors.append(error)
            return result

        log.info(f"Geocoded '{address.to_query()}' to ({location.latitude:.5f}, {location.longitude:.5f})")
        return self.fetch_location(location.latitude, location.longitude, parallel=parallel,
                                   address=address.to_query())

    def fetch_location(self, lat: float, lon: float, parallel: bool = False,
                       address: Optional[str] = None) -> EnvironmentalReport:
        """
        Run every enabled category for a point.

        Args:
            lat: Latitude
            lon: Longitude
            parallel: If True, run categories on a thread pool
            address: Label carried into the report

        Returns:
            EnvironmentalReport with one entry per enabled category
        """
        result = EnvironmentalReport(latitude=lat, longitude=lon, address=address)
        errors: List[str] = []

        if parallel:
            self._fetch_parallel(lat, lon, result, errors)
        else:
            self._fetch_sequential(lat, lon, result, errors)

        # Keep the category order stable regardless of completion order
        result.categories = {key: result.categories.get(key) for key in self.analyzers}
        result.data_sources = self._data_sources(result)
        result.fetch_errors = errors
        result.data_complete = len(errors) == 0

        log.info(f"Environmental report for ({lat:.5f}, {lon:.5f}): "
                 f"{len(result.categories)} categories, {len(errors)} error(s)")
        return result

    # ── Scheduling ────────────────────────────────────────────────────────────

    def _fetch_sequential(self, lat: float, lon: float, result: EnvironmentalReport, errors: list):
        for key, analyzer in self.analyzers.items():
            try:
                result.categories[key] = analyzer.analyze(lat, lon)
            except Exception as e:
                log.error(f"Error fetching {key}: {e}")
                result.categories[key] = None
                errors.append(f"{key}: {str(e)}")

    def _fetch_parallel(self, lat: float, lon: float, result: EnvironmentalReport, errors: list):
        analyzers = self.analyzers
        if not analyzers:
            return

        executor = ThreadPoolExecutor(max_workers=len(analyzers))
        futures = {
            executor.submit(analyzer.analyze, lat, lon): key
            for key, analyzer in analyzers.items()
        }

        try:
            for future in as_completed(futures, timeout=CATEGORY_TIMEOUT):
                self._collect(futures[future], future, result, errors)
        except FutureTimeoutError:
            for future, key in futures.items():
                if key in result.categories:
                    continue
                if future.done():
                    self._collect(key, future, result, errors)
                else:
                    log.error(f"{key} did not finish within {CATEGORY_TIMEOUT}s")
                    result.categories[key] = None
                    errors.append(f"{key}: timed out")
        finally:
            # Hung categories are abandoned, not awaited
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _collect(key: str, future, result: EnvironmentalReport, errors: list):
        try:
            result.categories[key] = future.result()
        except Exception as e:
            log.error(f"Error fetching {key}: {e}")
            result.categories[key] = None
            errors.append(f"{key}: {str(e)}")

    def _data_sources(self, result: EnvironmentalReport) -> List[str]:
        sources: List[str] = []
        for key, report in result.categories.items():
            if report is None:
                continue
            for name in self.analyzers[key].SOURCES:
                if name not in sources:
                    sources.append(name)
        return sources

