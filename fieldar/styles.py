"""Overlay render options: colors, opacities, widths and point symbols."""

from dataclasses import asdict, dataclass, fields, replace
from enum import Enum

from PIL import ImageColor


class PointSymbol(str, Enum):
    SPHERE = "sphere"
    BOX = "box"
    CONE = "cone"


@dataclass(frozen=True)
class SymbolShape:
    width: float    # metres across
    height: float   # metres tall
    top: float = 0.0  # cone tip radius


SYMBOL_SHAPES: dict[PointSymbol, SymbolShape] = {
    PointSymbol.SPHERE: SymbolShape(1.6, 1.6),
    PointSymbol.BOX:    SymbolShape(1.0, 1.0),
    PointSymbol.CONE:   SymbolShape(1.4, 1.2, top=0.1),
}

LABEL_RISE_M = 1.5  # label sits this far above its marker


@dataclass(frozen=True)
class OverlayOptions:
    polygon_fill: str = "#22d3ee"
    polygon_opacity: float = 0.25
    polygon_stroke: str = "#22d3ee"
    polygon_width: float = 4
    line_color: str = "#22c55e"
    line_width: float = 3
    point_color: str = "#eab308"
    point_symbol: PointSymbol = PointSymbol.SPHERE
    show_labels: bool = True
    height_offset: float = 0.0
    simplify_tolerance: float = 1.0
    transparency: float = 0.0

    @property
    def opacity(self) -> float:
        """Global opacity after transparency."""
        return 1.0 - self.transparency

    def to_mapping(self) -> dict:
        data = asdict(self)
        data["point_symbol"] = self.point_symbol.value
        return data


DEFAULT_OPTIONS = OverlayOptions()

_COLOR_FIELDS = ("polygon_fill", "polygon_stroke", "line_color", "point_color")
_UNIT_FIELDS = ("polygon_opacity", "transparency")
_NON_NEGATIVE = ("polygon_width", "line_width", "simplify_tolerance")


def rgb(color: str) -> tuple[int, int, int]:
    return ImageColor.getrgb(color)[:3]


def rgba(color: str, alpha: float) -> tuple[int, int, int, int]:
    r, g, b = rgb(color)
    return (r, g, b, round(255 * max(0.0, min(1.0, alpha))))


def options_from_mapping(data: dict,
                         base: OverlayOptions = DEFAULT_OPTIONS) -> OverlayOptions:
    """Overlay the given keys on base; raise ValueError on bad values."""
    known = {f.name for f in fields(OverlayOptions)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown options: {unknown}")

    values = {}
    for key, value in data.items():
        if key in _COLOR_FIELDS:
            if not isinstance(value, str):
                raise ValueError(f"{key} must be a color string")
            rgb(value)  # ValueError for unknown colors
            values[key] = str(value)
        elif key == "point_symbol":
            values[key] = PointSymbol(value)
        elif key == "show_labels":
            values[key] = bool(value)
        else:
            values[key] = float(value)
            if key in _UNIT_FIELDS and not 0.0 <= values[key] <= 1.0:
                raise ValueError(f"{key} must be between 0 and 1")
            if key in _NON_NEGATIVE and values[key] < 0:
                raise ValueError(f"{key} must be >= 0")
    return replace(base, **values)
