"""
Geographic primitives.

Includes:
- Feature model (closed geometry variants, validating constructor)
- Geometry math (containment, nearest-edge distance, simplification)
- Property coercion helpers
"""

from geo.features import (
    Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon, Geometry,
    GeographicFeature, FeatureCollection, FeatureValidationError, FeatureCollectionError,
    parse_feature, parse_feature_collection, geometry_to_dict,
)
from geo.geometry import (
    haversine_km, filter_valid_coords, simplify_coords, point_in_polygon,
    nearest_distance_m, centroid, ring_centroid, closest_point, line_length_m, area_m2,
)
from geo.coerce import is_absent, to_optional_str, to_optional_float, to_optional_int, prop, prop_float

__all__ = [
    # Feature model
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "Geometry",
    "GeographicFeature",
    "FeatureCollection",
    "FeatureValidationError",
    "FeatureCollectionError",
    "parse_feature",
    "parse_feature_collection",
    "geometry_to_dict",
    # Geometry math
    "haversine_km",
    "filter_valid_coords",
    "simplify_coords",
    "point_in_polygon",
    "nearest_distance_m",
    "centroid",
    "ring_centroid",
    "closest_point",
    "line_length_m",
    "area_m2",
    # Coercion
    "is_absent",
    "to_optional_str",
    "to_optional_float",
    "to_optional_int",
    "prop",
    "prop_float",
]
