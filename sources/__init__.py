"""
Data sources for the risk pipeline.

Includes:
- WFS feature service client (Vicmap / DataVic, Geoscience Australia)
- Geocoding (Nominatim)
- Local spatial store (sewer pipelines, traffic signal volumes)
- Fire management zones (local GeoJSON)
"""

from sources.wfs import FeatureSourceClient, FeatureSourceError, get_feature_source, buffer_degrees
from sources.geocoder import Geocoder, get_geocoder, Address, GeocodedLocation
from sources.spatial_store import SpatialStore, PipelineMatch, TrafficSite
from sources.fire_zones import FireZoneReader, FireManagementZone, get_fire_zone_reader

__all__ = [
    # Feature service
    "FeatureSourceClient",
    "FeatureSourceError",
    "get_feature_source",
    "buffer_degrees",
    # Geocoding
    "Geocoder",
    "get_geocoder",
    "Address",
    "GeocodedLocation",
    # Local data
    "SpatialStore",
    "PipelineMatch",
    "TrafficSite",
    "FireZoneReader",
    "FireManagementZone",
    "get_fire_zone_reader",
]
