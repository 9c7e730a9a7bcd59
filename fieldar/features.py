"""Vector feature model: geometry tagged union, features and collections."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shapely.errors import ShapelyError
from shapely.geometry import GeometryCollection, shape

logger = logging.getLogger(__name__)

Position = tuple[float, ...]  # (lon, lat) or (lon, lat, alt)


class GeometryKind(str, Enum):
    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    LINE_STRING = "LineString"
    MULTI_LINE_STRING = "MultiLineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"


# Nesting depth of the coordinate array below the geometry, per kind.
_DEPTH = {
    GeometryKind.POINT: 0,
    GeometryKind.MULTI_POINT: 1,
    GeometryKind.LINE_STRING: 1,
    GeometryKind.MULTI_LINE_STRING: 2,
    GeometryKind.POLYGON: 2,
    GeometryKind.MULTI_POLYGON: 3,
}


@dataclass(frozen=True)
class VectorGeometry:
    """One geometry of a fixed kind.

    coordinates is nested like GeoJSON: a single position for Point, a list of
    positions for MultiPoint/LineString, a list of rings or lines for
    Polygon/MultiLineString, and a list of polygons for MultiPolygon.
    """
    kind: GeometryKind
    coordinates: Any

    @property
    def is_empty(self) -> bool:
        return not self.coordinates

    @property
    def __geo_interface__(self) -> dict:
        return {"type": self.kind.value, "coordinates": self.coordinates}


@dataclass
class Feature:
    geometry: VectorGeometry | None
    properties: dict = field(default_factory=dict)

    @property
    def name(self) -> str | None:
        value = self.properties.get("name")
        return str(value) if value not in (None, "") else None


@dataclass
class FeatureCollection:
    features: list[Feature] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self):
        return iter(self.features)


def _position(value) -> Position:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise ValueError(f"not a position: {value!r}")
    pos = tuple(float(v) for v in value[:3])
    if not (-90.0 <= pos[1] <= 90.0):
        raise ValueError(f"latitude out of range: {pos[1]}")
    return pos


def _nested(value, depth: int):
    if depth == 0:
        return _position(value)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"expected an array, got {type(value).__name__}")
    return [_nested(v, depth - 1) for v in value]


def geometry_from_mapping(mapping) -> VectorGeometry | None:
    """Decode a GeoJSON geometry mapping, or None if it cannot be used."""
    if not isinstance(mapping, dict):
        return None
    try:
        kind = GeometryKind(mapping.get("type"))
    except ValueError:
        logger.debug("Unsupported geometry type %r", mapping.get("type"))
        return None
    raw = mapping.get("coordinates")
    if raw is None:
        return None
    try:
        coords = _nested(raw, _DEPTH[kind])
    except (TypeError, ValueError) as exc:
        logger.debug("Malformed %s geometry: %s", kind.value, exc)
        return None
    return VectorGeometry(kind, coords)


def feature_from_mapping(mapping) -> Feature:
    props = mapping.get("properties") if isinstance(mapping, dict) else None
    geom = mapping.get("geometry") if isinstance(mapping, dict) else None
    return Feature(
        geometry=geometry_from_mapping(geom),
        properties=dict(props) if isinstance(props, dict) else {},
    )


def collection_from_mapping(mapping: dict) -> FeatureCollection:
    """Build a collection from a decoded GeoJSON object.

    Accepts a FeatureCollection, a single Feature or a bare geometry.
    """
    kind = mapping.get("type")
    if kind == "FeatureCollection":
        raw = mapping.get("features") or []
        return FeatureCollection([feature_from_mapping(f) for f in raw])
    if kind == "Feature":
        return FeatureCollection([feature_from_mapping(mapping)])
    return FeatureCollection([Feature(geometry_from_mapping(mapping))])


def collection_to_mapping(collection: FeatureCollection) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": (f.geometry.__geo_interface__
                             if f.geometry is not None else None),
                "properties": f.properties,
            }
            for f in collection
        ],
    }


def list_features(collection: FeatureCollection) -> list[dict]:
    """Summaries for a feature list: id, display name and geometry type."""
    result = []
    for index, feat in enumerate(collection):
        result.append({
            "id": str(feat.properties.get("id") or index),
            "name": feat.name or f"Feature {index + 1}",
            "type": feat.geometry.kind.value if feat.geometry else "Unknown",
        })
    return result


def collection_bounds(collection: FeatureCollection
                      ) -> tuple[float, float, float, float] | None:
    """Return (south, west, north, east) covering every usable geometry."""
    shapes = []
    for index, feat in enumerate(collection):
        if feat.geometry is None or feat.geometry.is_empty:
            continue
        try:
            geom = shape(feat.geometry)
        except (ValueError, TypeError, ShapelyError) as exc:
            logger.debug("Feature %d has no usable extent: %s", index, exc)
            continue
        if not geom.is_empty:
            shapes.append(geom)
    if not shapes:
        return None
    west, south, east, north = GeometryCollection(shapes).bounds
    return (south, west, north, east)
