"""
Geometry Math - point-in-polygon, nearest-edge distance, simplification.

All public functions take the property position as (lat, lon) and a geometry
variant from geo.features. Distances are metres on the WGS84 ellipsoid
(pyproj.Geod) except point-to-point, which uses haversine with R = 6371 km.

Distance functions never raise on bad data: unusable geometry is reported
as math.inf so callers can drop it from "nearby" counts.
"""

import logging
import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from pyproj import Geod
from shapely.geometry import LineString as ShapelyLineString
from shapely.geometry import MultiLineString as ShapelyMultiLineString
from shapely.geometry import MultiPoint as ShapelyMultiPoint
from shapely.geometry import MultiPolygon as ShapelyMultiPolygon
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import nearest_points

from geo.features import (
    Geometry, LineString, MultiLineString, MultiPoint, MultiPolygon, Point, Polygon,
)

log = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
SIMPLIFY_VERTEX_LIMIT = 5000
SIMPLIFY_TOLERANCE_DEGREES = 0.0001  # ~11 m
MIN_RING_POSITIONS = 4

_GEOD = Geod(ellps="WGS84")
_VARIANTS = (Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon)

LonLat = Tuple[float, float]


def _check_variant(geometry: Any) -> None:
    if not isinstance(geometry, _VARIANTS):
        raise TypeError(f"Unsupported geometry object: {type(geometry).__name__}")


# ═══════════════════════════════════════════════════════════════════════════
# COORDINATE HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def filter_valid_coords(coords: Iterable[Any]) -> List[LonLat]:
    """
    Drop positions that are not arrays of at least two finite numbers.

    Elevation (a third value) is accepted and discarded.
    """
    valid = []
    for position in coords or ():
        if not isinstance(position, (list, tuple)) or len(position) < 2:
            continue
        lon, lat = position[0], position[1]
        if _is_number(lon) and _is_number(lat):
            valid.append((float(lon), float(lat)))
    return valid


def simplify_coords(coords: Sequence[LonLat], tolerance: float = SIMPLIFY_TOLERANCE_DEGREES) -> List[LonLat]:
    """Douglas-Peucker simplification; endpoints (and ring closure) are kept."""
    if len(coords) <= 2:
        return list(coords)
    simplified = ShapelyLineString(coords).simplify(tolerance, preserve_topology=False)
    return [(x, y) for x, y in simplified.coords]


def _usable_ring(ring: Sequence[Any]) -> Optional[List[LonLat]]:
    valid = filter_valid_coords(ring)
    if len(valid) < MIN_RING_POSITIONS:
        return None
    if len(valid) > SIMPLIFY_VERTEX_LIMIT:
        valid = simplify_coords(valid)
    return valid


def _outer_rings(geometry: Geometry) -> List[Sequence[Any]]:
    if isinstance(geometry, Polygon):
        return [geometry.outer_ring]
    if isinstance(geometry, MultiPolygon):
        return [polygon.outer_ring for polygon in geometry.polygons]
    return []


def _geodesic_m(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    _, _, distance = _GEOD.inv(lon1, lat1, lon2, lat2)
    return abs(distance)


def _distance_to_line_m(lat: float, lon: float, coords: Sequence[LonLat]) -> float:
    line = ShapelyLineString(coords)
    target = ShapelyPoint(lon, lat)
    nearest = line.interpolate(line.project(target))
    return _geodesic_m(lon, lat, nearest.x, nearest.y)


# ═══════════════════════════════════════════════════════════════════════════
# CONTAINMENT
# ═══════════════════════════════════════════════════════════════════════════

def point_in_polygon(lat: float, lon: float, geometry: Geometry) -> bool:
    """
    True if the point lies inside (or on the boundary of) any outer ring.

    Holes are not subtracted, matching the outer-ring-only distance model.
    Non-areal geometry is never "inside".
    """
    _check_variant(geometry)
    if not isinstance(geometry, (Polygon, MultiPolygon)):
        return False

    target = ShapelyPoint(lon, lat)
    for ring in _outer_rings(geometry):
        valid = filter_valid_coords(ring)
        if len(valid) < MIN_RING_POSITIONS:
            continue
        try:
            if ShapelyPolygon(valid).covers(target):
                return True
        except Exception as e:
            log.debug(f"Containment test failed on ring of {len(valid)} vertices: {e}")
    return False


# ═══════════════════════════════════════════════════════════════════════════
# DISTANCE
# ═══════════════════════════════════════════════════════════════════════════

def nearest_distance_m(lat: float, lon: float, geometry: Geometry) -> float:
    """
    Distance in metres from the point to the nearest part of the geometry.

    Polygons: 0 when contained, otherwise distance to the closest outer ring.
    Returns math.inf when nothing usable remains or the computation fails.
    """
    _check_variant(geometry)
    try:
        return _nearest_distance_m(lat, lon, geometry)
    except Exception as e:
        log.debug(f"Distance computation failed for {type(geometry).__name__}: {e}")
        return math.inf


def _nearest_distance_m(lat: float, lon: float, geometry: Geometry) -> float:
    if isinstance(geometry, Point):
        return haversine_km(lat, lon, geometry.lat, geometry.lon) * 1000

    if isinstance(geometry, MultiPoint):
        points = filter_valid_coords(geometry.coordinates)
        if not points:
            return math.inf
        return min(haversine_km(lat, lon, p_lat, p_lon) * 1000 for p_lon, p_lat in points)

    if isinstance(geometry, LineString):
        lines = [geometry.coordinates]
    elif isinstance(geometry, MultiLineString):
        lines = list(geometry.coordinates)
    else:
        lines = None

    if lines is not None:
        best = math.inf
        for line in lines:
            valid = filter_valid_coords(line)
            if len(valid) < 2:
                continue
            best = min(best, _distance_to_line_m(lat, lon, valid))
        return best

    # Polygon / MultiPolygon
    if point_in_polygon(lat, lon, geometry):
        return 0.0

    best = math.inf
    for ring in _outer_rings(geometry):
        usable = _usable_ring(ring)
        if usable is None:
            continue
        best = min(best, _distance_to_line_m(lat, lon, usable))
    return best


# ═══════════════════════════════════════════════════════════════════════════
# SHAPE CONVERSION / MEASUREMENT
# ═══════════════════════════════════════════════════════════════════════════

def to_shapely(geometry: Geometry) -> Optional[BaseGeometry]:
    """Convert to a shapely geometry, dropping invalid positions. None if empty."""
    _check_variant(geometry)

    if isinstance(geometry, Point):
        return ShapelyPoint(geometry.lon, geometry.lat)

    if isinstance(geometry, MultiPoint):
        points = filter_valid_coords(geometry.coordinates)
        return ShapelyMultiPoint(points) if points else None

    if isinstance(geometry, LineString):
        valid = filter_valid_coords(geometry.coordinates)
        return ShapelyLineString(valid) if len(valid) >= 2 else None

    if isinstance(geometry, MultiLineString):
        lines = [filter_valid_coords(line) for line in geometry.coordinates]
        lines = [line for line in lines if len(line) >= 2]
        return ShapelyMultiLineString(lines) if lines else None

    polygons = [geometry] if isinstance(geometry, Polygon) else geometry.polygons
    shapes = []
    for polygon in polygons:
        rings = [filter_valid_coords(ring) for ring in polygon.coordinates]
        if not rings or len(rings[0]) < MIN_RING_POSITIONS:
            continue
        holes = [ring for ring in rings[1:] if len(ring) >= MIN_RING_POSITIONS]
        shapes.append(ShapelyPolygon(rings[0], holes))
    if not shapes:
        return None
    if isinstance(geometry, Polygon):
        return shapes[0]
    return ShapelyMultiPolygon(shapes)


def centroid(geometry: Geometry) -> Optional[Tuple[float, float]]:
    """Shape centroid as (lat, lon), or None for empty geometry."""
    try:
        shape = to_shapely(geometry)
        if shape is None or shape.is_empty:
            return None
        c = shape.centroid
        return (c.y, c.x)
    except TypeError:
        raise
    except Exception as e:
        log.debug(f"Centroid failed: {e}")
        return None


def ring_centroid(geometry: Geometry) -> Optional[Tuple[float, float]]:
    """
    Vertex average of the first outer ring, as (lat, lon).

    Coarse, but cheap for radius checks against large burn-scar polygons.
    """
    _check_variant(geometry)
    if isinstance(geometry, Polygon):
        ring = geometry.outer_ring
    elif isinstance(geometry, MultiPolygon):
        ring = geometry.polygons[0].outer_ring if geometry.coordinates else ()
    else:
        return None

    valid = filter_valid_coords(ring)
    if not valid:
        return None
    lon = sum(p[0] for p in valid) / len(valid)
    lat = sum(p[1] for p in valid) / len(valid)
    return (lat, lon)


def closest_point(lat: float, lon: float, geometry: Geometry) -> Optional[Tuple[float, float]]:
    """Closest point of the geometry to the given position, as (lat, lon)."""
    shape = to_shapely(geometry)
    if shape is None:
        return None
    nearest, _ = nearest_points(shape, ShapelyPoint(lon, lat))
    return (nearest.y, nearest.x)


def line_length_m(geometry: Geometry) -> float:
    """Geodesic length in metres (0 for empty geometry)."""
    shape = to_shapely(geometry)
    if shape is None:
        return 0.0
    return _GEOD.geometry_length(shape)


def area_m2(geometry: Geometry) -> float:
    """Geodesic area in square metres (0 for empty geometry)."""
    shape = to_shapely(geometry)
    if shape is None:
        return 0.0
    area, _ = _GEOD.geometry_area_perimeter(shape)
    return abs(area)
