"""Heads-up overlay: FOV culling, screen layout and canvas drawing.

Only yaw is used.  A target's horizontal position is its offset from the
heading scaled across the field of view; its vertical position sits in a fixed
band, nearer targets lower on screen and everything beyond 3 km on the top
edge of the band.
"""

import io
import logging
from dataclasses import asdict, dataclass, field

from PIL import Image, ImageDraw, ImageFont

from .config import FIELD_OF_VIEW_DEG, HUD_HEIGHT, HUD_WIDTH, VISIBLE_RADIUS_M
from .geodesy import normalize_bearing, relative_bearing
from .styles import DEFAULT_OPTIONS, OverlayOptions, rgba
from .targets import Target

logger = logging.getLogger(__name__)

HORIZON_Y_RATIO = 0.4   # top of the band, fraction of height
BAND_Y_RATIO = 0.3      # band depth, fraction of height
DEPTH_SCALE_M = 3000.0  # distance at which a target reaches the band top

MARKER_RADIUS = 10
LABEL_SIZE = 14
PROMPT_SIZE = 16
CALIBRATION_PROMPT = "Move your device to calibrate heading..."


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def format_bearing(degrees: float) -> str:
    return f"{normalize_bearing(degrees):.0f}°"


def is_visible(target: Target, heading: float,
               fov: float = FIELD_OF_VIEW_DEG,
               max_radius: float = VISIBLE_RADIUS_M) -> bool:
    """Within range and inside the horizontal FOV, both bounds inclusive."""
    if target.distance > max_radius:
        return False
    return abs(relative_bearing(target.bearing, heading)) <= fov / 2


def screen_position(target: Target, heading: float, width: float,
                    height: float, fov: float = FIELD_OF_VIEW_DEG
                    ) -> tuple[float, float]:
    ratio = relative_bearing(target.bearing, heading) / (fov / 2)
    x = width / 2 + ratio * width / 2
    depth = min(target.distance / DEPTH_SCALE_M, 1.0)
    y = height * (HORIZON_Y_RATIO + BAND_Y_RATIO) - depth * height * BAND_Y_RATIO
    return x, y


@dataclass(frozen=True)
class HudItem:
    target_id: str
    feature_index: int
    screen_x: float
    screen_y: float
    label: str
    distance_text: str
    bearing_text: str


@dataclass
class HudLayout:
    calibrated: bool
    items: list[HudItem] = field(default_factory=list)
    overlay_count: int = 0
    visible_feature_count: int = 0
    total_feature_count: int = 0

    def to_mapping(self) -> dict:
        return asdict(self)


def count_features(targets: list[Target], fallback: int = 0) -> int:
    return len({t.feature_index for t in targets}) or fallback


def layout_hud(targets: list[Target], heading: float | None,
               width: float = HUD_WIDTH, height: float = HUD_HEIGHT, *,
               fov: float = FIELD_OF_VIEW_DEG,
               max_radius: float = VISIBLE_RADIUS_M,
               feature_count: int = 0) -> HudLayout:
    """Lay out the visible targets for the given heading.

    Without a heading nothing is projected and the visible counters stay 0.
    """
    total = count_features(targets, feature_count)
    if heading is None:
        return HudLayout(calibrated=False, total_feature_count=total)

    items = []
    for target in targets:
        if not is_visible(target, heading, fov, max_radius):
            continue
        x, y = screen_position(target, heading, width, height, fov)
        items.append(HudItem(
            target_id=target.id,
            feature_index=target.feature_index,
            screen_x=x,
            screen_y=y,
            label=target.label,
            distance_text=format_distance(target.distance),
            bearing_text=format_bearing(target.bearing),
        ))

    return HudLayout(
        calibrated=True,
        items=items,
        overlay_count=len(items),
        visible_feature_count=len({i.feature_index for i in items}),
        total_feature_count=total,
    )


_font_cache: dict[int, ImageFont.ImageFont] = {}


def _get_font(size: int):
    if size in _font_cache:
        return _font_cache[size]
    try:
        font = ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        font = ImageFont.load_default()
    _font_cache[size] = font
    return font


def _centered_text(draw: ImageDraw.ImageDraw, x: float, y: float, text: str,
                   font, fill) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text((x - (right - left) / 2, y - (bottom - top) / 2), text,
              font=font, fill=fill)


class HudCanvas:
    """Transparent RGBA layer composited over the camera frame.

    draw() always starts from a blank layer, so nothing from an earlier
    recomputation survives.
    """

    def __init__(self, width: int = HUD_WIDTH, height: int = HUD_HEIGHT):
        self.size = (int(width), int(height))
        self.image = Image.new("RGBA", self.size, (0, 0, 0, 0))

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def clear(self) -> None:
        self.image = Image.new("RGBA", self.size, (0, 0, 0, 0))

    def draw(self, layout: HudLayout,
             options: OverlayOptions = DEFAULT_OPTIONS) -> None:
        self.clear()
        draw = ImageDraw.Draw(self.image)

        if not layout.calibrated:
            draw.text((16, 32 - PROMPT_SIZE), CALIBRATION_PROMPT,
                      font=_get_font(PROMPT_SIZE), fill=(255, 255, 255, 204))
            return

        fill = rgba(options.point_color, 0.85 * options.opacity)
        outline = rgba(options.point_color, options.opacity)
        text_fill = (255, 255, 255, round(255 * options.opacity))
        font = _get_font(LABEL_SIZE)
        r = MARKER_RADIUS

        for item in layout.items:
            x, y = item.screen_x, item.screen_y
            draw.ellipse((x - r, y - r, x + r, y + r),
                         fill=fill, outline=outline, width=2)
            if options.show_labels:
                _centered_text(draw, x, y - 16 - LABEL_SIZE / 2, item.label,
                               font, text_fill)
            _centered_text(draw, x, y + 26 - LABEL_SIZE / 2,
                           f"{item.distance_text} • {item.bearing_text}",
                           font, text_fill)
        logger.debug("Drew %d HUD overlays", len(layout.items))

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()
