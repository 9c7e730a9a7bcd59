"""Overlay session: observer state, sensor subscriptions and recomputation.

Every event (position fix, heading sample, new features or options) runs one
complete, synchronous recomputation under the session lock.  Nothing is
carried between recomputations except the latest origin, heading and the
fixes used for smoothing.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from .config import (FENCE_HEIGHT_M, FIELD_OF_VIEW_DEG, GROUND_OFFSET_M,
                     HUD_HEIGHT, HUD_WIDTH, OBSERVER_HEIGHT_M,
                     SMOOTHING_SAMPLES, VISIBLE_RADIUS_M)
from .features import FeatureCollection
from .geodesy import GeoPoint, Projector, normalize_bearing, smooth_positions
from .hud import HudCanvas, HudLayout, layout_hud
from .scene import Scene, draw_scene
from .sensors import (PositionSample, SensorError, SensorHub,
                      SensorPermissionDenied, SensorUnavailable)
from .styles import DEFAULT_OPTIONS, OverlayOptions
from .targets import Target, extract_targets

logger = logging.getLogger(__name__)


class HudState(str, Enum):
    UNCALIBRATED = "uncalibrated"
    CALIBRATED = "calibrated"


class SensorStatus(str, Enum):
    IDLE = "idle"
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


@dataclass
class ObserverState:
    origin: GeoPoint | None = None
    heading: float | None = None
    accuracy: float | None = None
    status: SensorStatus = SensorStatus.IDLE
    heading_status: SensorStatus = SensorStatus.IDLE

    @property
    def hud_state(self) -> HudState:
        if self.heading is None:
            return HudState.UNCALIBRATED
        return HudState.CALIBRATED


class OverlaySession:

    def __init__(self, hub: SensorHub, *,
                 fov: float = FIELD_OF_VIEW_DEG,
                 max_radius: float = VISIBLE_RADIUS_M,
                 hud_size: tuple[int, int] = (HUD_WIDTH, HUD_HEIGHT),
                 observer_height: float = OBSERVER_HEIGHT_M,
                 ground_offset: float = GROUND_OFFSET_M,
                 fence_height: float = FENCE_HEIGHT_M,
                 smoothing_samples: int = SMOOTHING_SAMPLES,
                 scene: Scene | None = None):
        if smoothing_samples < 1:
            raise ValueError("smoothing_samples must be at least 1")
        self.hub = hub
        self.fov = fov
        self.max_radius = max_radius
        self.observer_height = observer_height
        self.ground_offset = ground_offset
        self.fence_height = fence_height
        self.smoothing_samples = smoothing_samples

        self.hud = HudCanvas(*hud_size)
        self.scene = scene if scene is not None else Scene()
        self.features = FeatureCollection()
        self.options = DEFAULT_OPTIONS

        self.observer = ObserverState()
        self.active = False
        self.targets: list[Target] = []
        self.layout = HudLayout(calibrated=False)
        self.scene_counts: dict[str, int] = {}

        self._fixes: list[GeoPoint] = []
        self._subscriptions = []
        self._lock = threading.Lock()

    # -- lifecycle --------------------------------------------------------

    def activate(self) -> None:
        with self._lock:
            if self.active:
                return
            self.active = True
            self.observer = ObserverState()
            try:
                self._subscriptions.append(
                    self.hub.watch_position(self._on_fix, self._on_position_error))
                self.observer.status = SensorStatus.GRANTED
            except SensorUnavailable as exc:
                logger.warning("Position unavailable: %s", exc)
                self.observer.status = SensorStatus.UNAVAILABLE
            try:
                self._subscriptions.append(self.hub.watch_heading(self._on_heading))
                self.observer.heading_status = SensorStatus.GRANTED
            except SensorUnavailable as exc:
                logger.warning("Heading unavailable: %s", exc)
                self.observer.heading_status = SensorStatus.UNAVAILABLE
            logger.info("Overlay activated (%s)", self.observer.status.value)
            self._recompute()

    def deactivate(self) -> None:
        with self._lock:
            for unsubscribe in self._subscriptions:
                unsubscribe()
            self._subscriptions = []
            self._fixes = []
            self.active = False
            self.observer = ObserverState()
            self.targets = []
            self.layout = HudLayout(calibrated=False)
            self.scene_counts = {}
            self.hud.clear()
            self.scene.clear()
            logger.info("Overlay deactivated")

    # -- inputs -----------------------------------------------------------

    def set_features(self, collection: FeatureCollection) -> None:
        with self._lock:
            self.features = collection
            if self.active:
                self._recompute()

    def set_options(self, options: OverlayOptions) -> None:
        with self._lock:
            self.options = options
            if self.active:
                self._recompute()

    def _on_fix(self, sample: PositionSample) -> None:
        with self._lock:
            if not self.active:
                return
            if self.observer.status in (SensorStatus.DENIED, SensorStatus.UNAVAILABLE):
                return  # origin stays frozen until reactivation
            self._fixes.append(sample.point)
            self._fixes = self._fixes[-self.smoothing_samples:]
            self.observer.origin = smooth_positions(self._fixes, self.smoothing_samples)
            self.observer.accuracy = sample.accuracy
            self._recompute()

    def _on_position_error(self, error: SensorError) -> None:
        with self._lock:
            if not self.active:
                return
            if isinstance(error, SensorPermissionDenied):
                self.observer.status = SensorStatus.DENIED
            else:
                self.observer.status = SensorStatus.UNAVAILABLE
            logger.warning("Position stream stopped (%s): %s",
                           self.observer.status.value, error)

    def _on_heading(self, heading: float | None) -> None:
        with self._lock:
            if not self.active:
                return
            self.observer.heading = (normalize_bearing(heading)
                                     if heading is not None else None)
            self._recompute()

    # -- recomputation ----------------------------------------------------

    def _recompute(self) -> None:
        origin = self.observer.origin
        if origin is None:
            self.targets = []
        else:
            self.targets = extract_targets(origin, self.features)

        self.layout = layout_hud(
            self.targets, self.observer.heading,
            self.hud.width, self.hud.height,
            fov=self.fov, max_radius=self.max_radius,
            feature_count=len(self.features),
        )
        self.hud.draw(self.layout, self.options)

        if origin is None:
            self.scene.clear()
            self.scene_counts = {}
        else:
            projector = Projector(origin, observer_height=self.observer_height,
                                  ground_offset=self.ground_offset)
            self.scene_counts = draw_scene(self.scene, projector, self.targets,
                                           self.features, self.options,
                                           self.fence_height)

    def hud_png(self) -> bytes:
        with self._lock:
            return self.hud.to_png()

    def write_scene(self, stream) -> None:
        with self._lock:
            self.scene.write(stream)

    def telemetry(self) -> dict:
        obs = self.observer
        return {
            "active": self.active,
            "state": obs.hud_state.value,
            "permission": obs.status.value,
            "heading_status": obs.heading_status.value,
            "accuracy": obs.accuracy,
            "heading": obs.heading,
            "origin": ({"latitude": obs.origin.latitude,
                        "longitude": obs.origin.longitude,
                        "altitude": obs.origin.altitude}
                       if obs.origin else None),
            "overlays": self.layout.overlay_count,
            "visible_features": self.layout.visible_feature_count,
            "total_features": self.layout.total_feature_count,
        }
