"""3D overlay scene: markers, polylines, polygons and fences in the local frame.

The scene is an ezdxf drawing in metres with x = east, y = north, z = up.
Everything the engine draws lives on FIELDAR-* layers; clear() removes only
those, so entities other code puts in the drawing are left alone.  Heading is
never applied here; rotating the view is the 3D camera's job.
"""

import logging

import ezdxf
from ezdxf.enums import TextEntityAlignment
from ezdxf.render import forms

from .config import FENCE_HEIGHT_M
from .features import FeatureCollection, GeometryKind
from .geodesy import Projector
from .simplify import douglas_peucker, simplify_ring
from .styles import (DEFAULT_OPTIONS, LABEL_RISE_M, SYMBOL_SHAPES,
                     OverlayOptions, PointSymbol, rgb)
from .targets import Target, TargetKind, outer_ring, to_geopoint

logger = logging.getLogger(__name__)

# Scene layer names per primitive group
LAYER_MARKERS = "FIELDAR-MARKERS"
LAYER_LABELS = "FIELDAR-LABELS"
LAYER_LINES = "FIELDAR-LINES"
LAYER_POLYGONS = "FIELDAR-POLYGONS"
LAYER_FENCES = "FIELDAR-FENCES"

ENGINE_LAYERS = (LAYER_MARKERS, LAYER_LABELS, LAYER_LINES,
                 LAYER_POLYGONS, LAYER_FENCES)

LABEL_HEIGHT_M = 0.6

# Lineweights DXF accepts, hundredths of mm
_LINEWEIGHTS = (0, 5, 9, 13, 15, 18, 20, 25, 30, 35, 40, 50, 53, 60, 70, 80,
                90, 100, 106, 120, 140, 158, 200, 211)


def _lineweight(width_px: float) -> int:
    """Snap a screen stroke width (px) to the nearest DXF lineweight."""
    target = width_px * 10
    return min(_LINEWEIGHTS, key=lambda lw: abs(lw - target))


def _style(entity, color: str, alpha: float):
    entity.rgb = rgb(color)
    entity.transparency = 1.0 - max(0.0, min(1.0, alpha))
    return entity


class Scene:
    """Owned handle on the drawing the overlay renders into."""

    def __init__(self, doc: ezdxf.document.Drawing | None = None):
        if doc is None:
            doc = ezdxf.new("R2010")
            doc.header["$INSUNITS"] = 6  # metres
        self.doc = doc
        self.msp = doc.modelspace()
        for name in ENGINE_LAYERS:
            if name not in doc.layers:
                doc.layers.add(name)

    def engine_entities(self) -> list:
        return [e for e in self.msp if e.dxf.layer in ENGINE_LAYERS]

    def clear(self) -> int:
        """Delete everything this engine drew; return how many were removed."""
        owned = self.engine_entities()
        for entity in owned:
            self.msp.delete_entity(entity)
        return len(owned)

    def write(self, stream) -> None:
        self.doc.write(stream)


def _marker_mesh(symbol: PointSymbol):
    shape = SYMBOL_SHAPES[symbol]
    match symbol:
        case PointSymbol.SPHERE:
            return forms.sphere(count=16, stacks=8, radius=shape.width / 2)
        case PointSymbol.BOX:
            mesh = forms.cube(center=True)
            mesh.scale(shape.width, shape.width, shape.height)
            return mesh
        case PointSymbol.CONE:
            return forms.cone(count=16, radius=shape.width / 2,
                              apex=(0, 0, shape.height))


def _add_label(scene: Scene, text: str, x: float, y: float, z: float,
               alpha: float) -> None:
    label = scene.msp.add_text(
        text,
        height=LABEL_HEIGHT_M,
        dxfattribs={"layer": LAYER_LABELS},
    )
    label.set_placement((x, y, z), align=TextEntityAlignment.MIDDLE_CENTER)
    _style(label, "#ffffff", alpha)


def _draw_line(scene: Scene, projector: Projector, line: list,
               options: OverlayOptions) -> bool:
    placed = [projector.place(to_geopoint(c)) for c in line]
    if len(placed) < 2:
        return False
    pts = douglas_peucker([(v.east, v.north, v.up) for v in placed],
                          options.simplify_tolerance)
    z = options.height_offset
    polyline = scene.msp.add_polyline3d(
        [(e, n, up + z) for e, n, up in pts],
        dxfattribs={"layer": LAYER_LINES,
                    "lineweight": _lineweight(options.line_width)},
    )
    _style(polyline, options.line_color, options.opacity)
    return True


def _draw_polygon(scene: Scene, projector: Projector, rings: list,
                  options: OverlayOptions, fence_height: float) -> int:
    """Draw outline, fill and fences; return the number of fence quads."""
    ring = outer_ring(rings)
    if len({c[:2] for c in ring}) < 3:
        return -1
    placed = [projector.place(to_geopoint(c)) for c in ring + [ring[0]]]
    pts = simplify_ring([(v.east, v.north, v.up) for v in placed],
                        options.simplify_tolerance)
    z = options.height_offset
    opacity = options.opacity

    outline = scene.msp.add_polyline3d(
        [(e, n, up + z) for e, n, up in pts[:-1]],
        dxfattribs={"layer": LAYER_POLYGONS,
                    "lineweight": _lineweight(options.polygon_width)},
    )
    outline.close(True)
    _style(outline, options.polygon_stroke, opacity)

    fill_alpha = options.polygon_opacity * opacity
    hatch = scene.msp.add_hatch(dxfattribs={"layer": LAYER_POLYGONS})
    hatch.paths.add_polyline_path([(e, n) for e, n, _ in pts[:-1]],
                                  is_closed=True)
    hatch.dxf.elevation = (0, 0, sum(p[2] for p in pts[:-1]) / (len(pts) - 1) + z)
    _style(hatch, options.polygon_fill, fill_alpha)

    fences = 0
    for (e1, n1, _), (e2, n2, _) in zip(pts, pts[1:]):
        if (e1, n1) == (e2, n2):
            continue
        face = scene.msp.add_3dface(
            [(e1, n1, 0.0), (e2, n2, 0.0),
             (e2, n2, fence_height), (e1, n1, fence_height)],
            dxfattribs={"layer": LAYER_FENCES},
        )
        _style(face, options.polygon_fill, fill_alpha)
        fences += 1
    return fences


def draw_scene(scene: Scene, projector: Projector, targets: list[Target],
               collection: FeatureCollection,
               options: OverlayOptions = DEFAULT_OPTIONS,
               fence_height: float = FENCE_HEIGHT_M) -> dict[str, int]:
    """Clear the scene and place every primitive; return primitive counts."""
    scene.clear()
    counts = {"markers": 0, "labels": 0, "lines": 0, "polygons": 0, "fences": 0}
    z = options.height_offset

    for target in targets:
        if target.kind is TargetKind.CENTROID:
            feat = collection.features[target.feature_index]
            if not (options.show_labels and feat.name):
                continue
            v = projector.place(target.point)
            if feat.geometry.kind in (GeometryKind.POLYGON,
                                      GeometryKind.MULTI_POLYGON):
                top = fence_height + z  # above the fence
            else:
                top = v.up + z
            _add_label(scene, target.label, v.east, v.north,
                       top + LABEL_RISE_M, options.opacity)
            counts["labels"] += 1
        elif target.kind is TargetKind.POINT:
            v = projector.place(target.point)
            mesh = _marker_mesh(options.point_symbol)
            mesh.translate(v.east, v.north, v.up + z)
            marker = mesh.render_mesh(scene.msp,
                                      dxfattribs={"layer": LAYER_MARKERS})
            _style(marker, options.point_color, options.opacity)
            counts["markers"] += 1
            if options.show_labels:
                _add_label(scene, target.label, v.east, v.north,
                           v.up + z + LABEL_RISE_M, options.opacity)
                counts["labels"] += 1

    for index, feat in enumerate(collection):
        geom = feat.geometry
        if geom is None or geom.is_empty:
            continue
        match geom.kind:
            case GeometryKind.LINE_STRING:
                lines = [geom.coordinates]
                polygons = []
            case GeometryKind.MULTI_LINE_STRING:
                lines = geom.coordinates
                polygons = []
            case GeometryKind.POLYGON:
                lines = []
                polygons = [geom.coordinates]
            case GeometryKind.MULTI_POLYGON:
                lines = []
                polygons = geom.coordinates
            case _:
                continue

        for line in lines:
            if _draw_line(scene, projector, line, options):
                counts["lines"] += 1
        for rings in polygons:
            fences = _draw_polygon(scene, projector, rings, options, fence_height)
            if fences < 0:
                logger.debug("Feature %d: ring too small to draw", index)
                continue
            counts["polygons"] += 1
            counts["fences"] += fences

    logger.debug("Scene redrawn: %s", counts)
    return counts
