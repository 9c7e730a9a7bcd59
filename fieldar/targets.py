"""Aim-point extraction: flatten a feature collection into bearing targets."""

import logging
from dataclasses import dataclass
from enum import Enum

from .features import FeatureCollection, GeometryKind, Position
from .geodesy import GeoPoint, bearing, distance

logger = logging.getLogger(__name__)


class TargetKind(str, Enum):
    POINT = "point"
    VERTEX = "vertex"
    CENTROID = "centroid"


@dataclass(frozen=True)
class Target:
    id: str
    label: str
    point: GeoPoint
    distance: float
    bearing: float
    kind: TargetKind
    feature_index: int


def to_geopoint(pos: Position) -> GeoPoint:
    return GeoPoint(latitude=pos[1], longitude=pos[0],
                    altitude=pos[2] if len(pos) > 2 else None)


def outer_ring(rings: list) -> list[Position]:
    """Distinct vertices of a polygon's outer ring (closing vertex dropped)."""
    if not rings:
        return []
    ring = list(rings[0])
    if len(ring) > 1 and ring[0][:2] == ring[-1][:2]:
        ring = ring[:-1]
    return ring


def average_centroid(coords: list[Position]) -> GeoPoint:
    """Arithmetic mean of the vertices.

    Only a fair stand-in for the true centroid on compact shapes; it is biased
    toward densely sampled edges and wrong across the antimeridian.
    """
    n = len(coords) or 1
    return GeoPoint(
        latitude=sum(c[1] for c in coords) / n,
        longitude=sum(c[0] for c in coords) / n,
    )


class _Builder:
    def __init__(self, origin: GeoPoint):
        self.origin = origin
        self.targets: list[Target] = []

    def add(self, target_id: str, label: str | None, point: GeoPoint,
            kind: TargetKind, feature_index: int):
        self.targets.append(Target(
            id=target_id,
            label=label or kind.value,
            point=point,
            distance=distance(self.origin, point),
            bearing=bearing(self.origin, point),
            kind=kind,
            feature_index=feature_index,
        ))

    def chain(self, prefix: str, label: str | None, coords: list[Position],
              feature_index: int):
        if not coords:
            return
        for idx, pos in enumerate(coords):
            self.add(f"{prefix}-v{idx}", label, to_geopoint(pos),
                     TargetKind.VERTEX, feature_index)
        self.add(f"{prefix}-centroid", label, average_centroid(coords),
                 TargetKind.CENTROID, feature_index)

    def ring(self, prefix: str, label: str | None, rings: list,
             feature_index: int):
        ring = outer_ring(rings)
        if len({c[:2] for c in ring}) < 3:
            logger.debug("Skipping %s: outer ring has fewer than 3 vertices", prefix)
            return
        self.chain(prefix, label, ring, feature_index)


def extract_targets(origin: GeoPoint,
                    collection: FeatureCollection) -> list[Target]:
    """Targets for every feature, in feature order then coordinate order."""
    builder = _Builder(origin)

    for index, feat in enumerate(collection):
        geom = feat.geometry
        if geom is None or geom.is_empty:
            logger.debug("Skipping feature %d: no geometry", index)
            continue
        label = feat.name
        common = f"{geom.kind.value}-{index}"

        match geom.kind:
            case GeometryKind.POINT:
                builder.add(common, label, to_geopoint(geom.coordinates),
                            TargetKind.POINT, index)
            case GeometryKind.MULTI_POINT:
                for idx, pos in enumerate(geom.coordinates):
                    builder.add(f"{common}-p{idx}", label, to_geopoint(pos),
                                TargetKind.POINT, index)
            case GeometryKind.LINE_STRING:
                builder.chain(common, label, geom.coordinates, index)
            case GeometryKind.MULTI_LINE_STRING:
                for part, line in enumerate(geom.coordinates):
                    builder.chain(f"{common}-{part}", label, line, index)
            case GeometryKind.POLYGON:
                builder.ring(common, label, geom.coordinates, index)
            case GeometryKind.MULTI_POLYGON:
                for part, rings in enumerate(geom.coordinates):
                    builder.ring(f"{common}-{part}", label, rings, index)

    return builder.targets
