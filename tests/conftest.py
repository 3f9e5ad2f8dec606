import pytest
from unittest.mock import MagicMock
from geo.features import parse_feature_collection

LAT, LON = -37.8136, 144.9631


def square_ring(lat, lon, half):
    return [[lon - half, lat - half], [lon + half, lat - half], [lon + half, lat + half],
            [lon - half, lat + half], [lon - half, lat - half]]


@pytest.fixture
def polygon():
    """Factory for a raw square polygon feature."""
    def make(lat=LAT, lon=LON, half=0.0005, **properties):
        return {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [square_ring(lat, lon, half)]},
            "properties": properties,
        }
    return make


@pytest.fixture
def point():
    """Factory for a raw point feature."""
    def make(lat, lon, **properties):
        return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lon, lat]}, "properties": properties}
    return make


@pytest.fixture
def line():
    """Factory for a raw east-west line feature at a given latitude."""
    def make(lat, lon=LON, half_width=0.01, **properties):
        return {
            "type": "Feature",
            "geometry": {"type": "LineString", "coordinates": [[lon - half_width, lat], [lon + half_width, lat]]},
            "properties": properties,
        }
    return make


@pytest.fixture
def overlay(polygon):
    """Factory for a plan overlay feature; offset_deg moves it north of the property."""
    def make(code, description="", offset_deg=0.0, half=0.0005, **extra):
        return polygon(
            lat=LAT + offset_deg, half=half,
            scheme_code=code, zone_code=code, zone_description=description, lga="MELBOURNE", **extra)
    return make


@pytest.fixture
def feature_source():
    """
    Factory for a fake feature source.

    Maps layer name -> list of raw features, or an exception to raise.
    Layers not listed return an empty collection.
    """
    def make(layers):
        source = MagicMock()

        def get_features(lat, lon, buffer_deg, type_name, **kwargs):
            raw = layers.get(type_name, [])
            if isinstance(raw, Exception):
                raise raw
            return parse_feature_collection({"type": "FeatureCollection", "features": raw})

        source.get_features.side_effect = get_features
        return source
    return make
