"""Position and heading streams the overlay subscribes to."""

import logging
from dataclasses import dataclass
from typing import Callable

from .geodesy import GeoPoint, normalize_bearing

logger = logging.getLogger(__name__)


class SensorError(Exception):
    """A sensor stream reported a failure instead of a sample."""


class SensorPermissionDenied(SensorError):
    """The user or platform refused access to the sensor."""


class SensorUnavailable(SensorError):
    """The device has no such sensor; handled as a permanent denial."""


@dataclass(frozen=True)
class PositionSample:
    latitude: float
    longitude: float
    altitude: float | None = None
    accuracy: float | None = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude, self.altitude)


def _number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def derive_heading(orientation: dict) -> float | None:
    """Compass heading from a device-orientation reading, if it carries one.

    iOS reports webkitCompassHeading directly.  Elsewhere alpha is only a
    compass angle when the reading is absolute, and it turns the other way.
    """
    compass = orientation.get("webkitCompassHeading")
    if _number(compass):
        return normalize_bearing(compass)
    alpha = orientation.get("alpha")
    if orientation.get("absolute") and _number(alpha):
        return normalize_bearing(360.0 - alpha)
    return None


Unsubscribe = Callable[[], None]


class SensorHub:
    """Fans out sensor readings to whoever is subscribed.

    Publishing is synchronous: every callback has run when publish_* returns.
    """

    def __init__(self, has_position: bool = True, has_heading: bool = True):
        self.has_position = has_position
        self.has_heading = has_heading
        self._position_watchers: list[tuple[Callable, Callable]] = []
        self._heading_watchers: list[Callable] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._position_watchers) + len(self._heading_watchers)

    def watch_position(self, on_fix: Callable[[PositionSample], None],
                       on_error: Callable[[SensorError], None]) -> Unsubscribe:
        if not self.has_position:
            raise SensorUnavailable("no position sensor")
        entry = (on_fix, on_error)
        self._position_watchers.append(entry)

        def unsubscribe():
            if entry in self._position_watchers:
                self._position_watchers.remove(entry)
        return unsubscribe

    def watch_heading(self, on_heading: Callable[[float | None], None]
                      ) -> Unsubscribe:
        if not self.has_heading:
            raise SensorUnavailable("no orientation sensor")
        self._heading_watchers.append(on_heading)

        def unsubscribe():
            if on_heading in self._heading_watchers:
                self._heading_watchers.remove(on_heading)
        return unsubscribe

    def publish_position(self, sample: PositionSample) -> None:
        for on_fix, _ in list(self._position_watchers):
            on_fix(sample)

    def publish_position_error(self, error: SensorError) -> None:
        logger.warning("Position stream error: %s", error)
        for _, on_error in list(self._position_watchers):
            on_error(error)

    def publish_heading(self, heading: float | None) -> None:
        for on_heading in list(self._heading_watchers):
            on_heading(heading)
