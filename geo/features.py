"""
Geographic feature model.

Feature service payloads are parsed in two steps: the JSON body is decoded
into plain dicts, then `parse_feature` either builds an immutable
`GeographicFeature` or returns a `FeatureValidationError` describing where
the payload is malformed. Invalid features never travel past this module.

Geometry is a closed set of variants:
- Point, MultiPoint
- LineString, MultiLineString
- Polygon, MultiPolygon

Coordinates are kept as delivered ([lon, lat] or [lon, lat, z]); filtering
of non-finite positions happens in geo.geometry, where a single bad vertex
only costs that vertex rather than the whole feature.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

log = logging.getLogger(__name__)

Position = Tuple[Any, ...]


@dataclass(frozen=True)
class Point:
    coordinates: Position

    @property
    def lon(self) -> float:
        return float(self.coordinates[0])

    @property
    def lat(self) -> float:
        return float(self.coordinates[1])


@dataclass(frozen=True)
class MultiPoint:
    coordinates: Tuple[Position, ...]


@dataclass(frozen=True)
class LineString:
    coordinates: Tuple[Position, ...]


@dataclass(frozen=True)
class MultiLineString:
    coordinates: Tuple[Tuple[Position, ...], ...]


@dataclass(frozen=True)
class Polygon:
    """Rings: first is the outer ring, any others are holes."""
    coordinates: Tuple[Tuple[Position, ...], ...]

    @property
    def outer_ring(self) -> Tuple[Position, ...]:
        return self.coordinates[0] if self.coordinates else ()


@dataclass(frozen=True)
class MultiPolygon:
    coordinates: Tuple[Tuple[Tuple[Position, ...], ...], ...]

    @property
    def polygons(self) -> List[Polygon]:
        return [Polygon(rings) for rings in self.coordinates]


Geometry = Union[Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon]

# type name -> (variant class, list nesting depth above a single position)
GEOMETRY_VARIANTS = {
    "Point": (Point, 0),
    "MultiPoint": (MultiPoint, 1),
    "LineString": (LineString, 1),
    "MultiLineString": (MultiLineString, 2),
    "Polygon": (Polygon, 2),
    "MultiPolygon": (MultiPolygon, 3),
}


@dataclass(frozen=True)
class GeographicFeature:
    """One record from a feature service. Owned by the call that fetched it."""
    geometry: Geometry
    properties: Mapping[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    bbox: Optional[Tuple[float, ...]] = None

    @property
    def geometry_type(self) -> str:
        return type(self.geometry).__name__

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


@dataclass(frozen=True)
class FeatureValidationError:
    """Where and why a raw feature was rejected."""
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class FeatureCollection:
    features: List[GeographicFeature] = field(default_factory=list)
    total_features: Optional[int] = None
    number_matched: Optional[int] = None
    number_returned: Optional[int] = None
    timestamp: Optional[str] = None
    rejected: List[FeatureValidationError] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self):
        return iter(self.features)

    @classmethod
    def empty(cls) -> "FeatureCollection":
        return cls()


class FeatureCollectionError(ValueError):
    """The top-level payload is not a feature collection at all."""


class _InvalidShape(Exception):
    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path
        self.message = message


# ═══════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════

def _nest(value: Any, depth: int, path: str) -> tuple:
    if not isinstance(value, (list, tuple)):
        raise _InvalidShape(path, f"expected an array, got {type(value).__name__}")
    if depth == 0:
        return tuple(value)
    return tuple(_nest(item, depth - 1, f"{path}[{i}]") for i, item in enumerate(value))


def parse_geometry(raw: Any, path: str = "geometry") -> Geometry:
    """Build a geometry variant from a GeoJSON geometry dict."""
    if not isinstance(raw, dict):
        raise _InvalidShape(path, "missing or non-object geometry")

    type_name = raw.get("type")
    if type_name not in GEOMETRY_VARIANTS:
        raise _InvalidShape(f"{path}.type", f"unsupported geometry type {type_name!r}")

    variant, depth = GEOMETRY_VARIANTS[type_name]
    coordinates = _nest(raw.get("coordinates"), depth, f"{path}.coordinates")

    if variant is Point:
        if len(coordinates) < 2:
            raise _InvalidShape(f"{path}.coordinates", "point needs longitude and latitude")
        try:
            lon, lat = float(coordinates[0]), float(coordinates[1])
        except (TypeError, ValueError):
            raise _InvalidShape(f"{path}.coordinates", "point coordinates are not numeric")
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise _InvalidShape(f"{path}.coordinates", "point coordinates are not finite")

    return variant(coordinates)


def parse_feature(raw: Any, index: int = 0) -> Union[GeographicFeature, FeatureValidationError]:
    """
    Validate one raw GeoJSON feature.

    Returns the typed feature, or a FeatureValidationError value. Never raises.
    """
    path = f"features[{index}]"
    if not isinstance(raw, dict):
        return FeatureValidationError(path, "feature is not an object")

    properties = raw.get("properties")
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        return FeatureValidationError(f"{path}.properties", "properties is not an object")

    try:
        geometry = parse_geometry(raw.get("geometry"), f"{path}.geometry")
    except _InvalidShape as e:
        return FeatureValidationError(e.path, e.message)

    bbox = raw.get("bbox")
    if bbox is not None:
        try:
            bbox = tuple(float(v) for v in bbox)
        except (TypeError, ValueError):
            bbox = None

    feature_id = raw.get("id")
    return GeographicFeature(
        geometry=geometry,
        properties=dict(properties),
        id=str(feature_id) if feature_id is not None else None,
        bbox=bbox,
    )


def parse_feature_collection(raw: Any) -> FeatureCollection:
    """
    Validate a FeatureCollection payload.

    Individual malformed features are dropped (and kept in `rejected`);
    a payload that is not a collection raises FeatureCollectionError.
    """
    if not isinstance(raw, dict):
        raise FeatureCollectionError(f"expected a JSON object, got {type(raw).__name__}")

    raw_features = raw.get("features")
    if not isinstance(raw_features, list):
        raise FeatureCollectionError("payload has no 'features' array")

    collection = FeatureCollection(
        total_features=raw.get("totalFeatures") if isinstance(raw.get("totalFeatures"), int) else None,
        number_matched=raw.get("numberMatched") if isinstance(raw.get("numberMatched"), int) else None,
        number_returned=raw.get("numberReturned") if isinstance(raw.get("numberReturned"), int) else None,
        timestamp=raw.get("timeStamp"),
    )

    for i, item in enumerate(raw_features):
        result = parse_feature(item, i)
        if isinstance(result, FeatureValidationError):
            collection.rejected.append(result)
        else:
            collection.features.append(result)

    if collection.rejected:
        log.warning(f"Dropped {len(collection.rejected)} invalid feature(s): {collection.rejected[0]}")

    return collection


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def geometry_to_dict(geometry: Geometry) -> Dict[str, Any]:
    """Serialise a geometry variant back to a GeoJSON dict."""
    if not isinstance(geometry, (Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon)):
        raise TypeError(f"Not a geometry variant: {type(geometry).__name__}")
    return {"type": type(geometry).__name__, "coordinates": _thaw(geometry.coordinates)}
