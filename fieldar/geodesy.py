"""Spherical geodesy and local tangent-plane projection around an observer.

All transforms here treat the Earth as a sphere of mean radius R.  The
tangent-plane (ENU) transform is the flat-earth linear approximation:

    east  = dlon * cos(lat0) * R
    north = dlat * R

It is accurate to well under a percent for ranges up to a few tens of
kilometres at mid latitudes.  The error grows with range and as |lat0|
approaches 90 degrees, where cos(lat0) -> 0 and east offsets collapse.
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000.0  # mean radius


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    altitude: float | None = None


@dataclass(frozen=True)
class LocalTangentVector:
    east: float
    north: float
    up: float


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance in metres."""
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    h = (math.sin(dlat / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    # rounding can push h a hair past 1 for antipodal points
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, h)))


def bearing(a: GeoPoint, b: GeoPoint) -> float:
    """Initial great-circle bearing from a to b, degrees in [0, 360).

    Coincident points have no direction; 0 is returned for them.
    """
    if (a.latitude, a.longitude) == (b.latitude, b.longitude):
        return 0.0
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    y = math.sin(dlon) * math.cos(lat2)
    x = (math.cos(lat1) * math.sin(lat2)
         - math.sin(lat1) * math.cos(lat2) * math.cos(dlon))
    return normalize_bearing(math.degrees(math.atan2(y, x)))


def normalize_bearing(value: float) -> float:
    """Wrap any angle into [0, 360)."""
    normalized = ((value % 360.0) + 360.0) % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if normalized >= 360.0 else normalized


def relative_bearing(target_bearing: float, heading: float) -> float:
    """Signed offset of a bearing from the current heading, in (-180, 180]."""
    delta = normalize_bearing(target_bearing - heading)
    return delta - 360.0 if delta > 180.0 else delta


def _altitude(point: GeoPoint) -> float:
    return point.altitude if point.altitude is not None else 0.0


def _east_north(origin: GeoPoint, point: GeoPoint) -> tuple[float, float]:
    dlat = math.radians(point.latitude - origin.latitude)
    dlon = math.radians(point.longitude - origin.longitude)
    east = dlon * math.cos(math.radians(origin.latitude)) * EARTH_RADIUS_M
    north = dlat * EARTH_RADIUS_M
    return east, north


def to_tangent_plane(origin: GeoPoint, point: GeoPoint) -> LocalTangentVector:
    """ENU offset of point from origin; up is measured from the sensor.

    Missing altitudes count as 0.
    """
    east, north = _east_north(origin, point)
    return LocalTangentVector(east, north, _altitude(point) - _altitude(origin))


def to_ground_frame(origin: GeoPoint, point: GeoPoint,
                    ground: float) -> LocalTangentVector:
    """ENU offset with vertical zero at the estimated terrain level.

    A point without an altitude lies on the ground (up == 0).
    """
    east, north = _east_north(origin, point)
    up = point.altitude - ground if point.altitude is not None else 0.0
    return LocalTangentVector(east, north, up)


def ground_altitude(origin: GeoPoint, observer_height: float,
                    offset: float = 0.0) -> float:
    """Terrain altitude under the observer holding the sensor."""
    return _altitude(origin) - observer_height - offset


class Projector:
    """Projects WGS84 points into the observer's local frame.

    With observer_height=None the frame is the plain tangent plane centred on
    the sensor.  Otherwise vertical zero is the ground below the observer,
    estimated as origin altitude - observer_height - ground_offset.
    """

    def __init__(self, origin: GeoPoint, *,
                 observer_height: float | None = None,
                 ground_offset: float = 0.0):
        self.origin = origin
        if observer_height is None:
            self.ground = None
        else:
            self.ground = ground_altitude(origin, observer_height, ground_offset)

    def place(self, point: GeoPoint) -> LocalTangentVector:
        if self.ground is None:
            return to_tangent_plane(self.origin, point)
        return to_ground_frame(self.origin, point, self.ground)


def smooth_positions(samples: list[GeoPoint],
                     max_samples: int = 5) -> GeoPoint | None:
    """Average the most recent fixes to damp GPS jitter.

    Longitudes are unwrapped around the first fix so that fixes straddling
    the antimeridian average to a point near it.  Only fixes that carry an
    altitude contribute to the averaged altitude.
    """
    trimmed = samples[-max_samples:] if max_samples > 0 else []
    if not trimmed:
        return None
    n = len(trimmed)
    ref = trimmed[0].longitude
    dlon = sum(relative_bearing(p.longitude, ref) for p in trimmed) / n
    longitude = normalize_bearing(ref + dlon + 180.0) - 180.0
    altitudes = [p.altitude for p in trimmed if p.altitude is not None]
    return GeoPoint(
        latitude=sum(p.latitude for p in trimmed) / n,
        longitude=longitude,
        altitude=sum(altitudes) / len(altitudes) if altitudes else None,
    )
