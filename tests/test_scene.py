import pytest

from fieldar.features import collection_from_mapping
from fieldar.geodesy import GeoPoint, Projector
from fieldar.scene import (ENGINE_LAYERS, LAYER_FENCES, LAYER_LABELS,
                           LAYER_LINES, LAYER_MARKERS, LAYER_POLYGONS, Scene,
                           draw_scene)
from fieldar.styles import LABEL_RISE_M, OverlayOptions, PointSymbol
from fieldar.targets import extract_targets

ORIGIN = GeoPoint(37.0, 23.0, 100.0)

COLLECTION = collection_from_mapping({
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"name": "Tower"},
         "geometry": {"type": "Point", "coordinates": [23.0005, 37.0005]}},
        {"type": "Feature", "properties": {},
         "geometry": {"type": "LineString", "coordinates": [
             [23.0, 37.001], [23.0005, 37.001], [23.001, 37.001], [23.001, 37.002]]}},
        {"type": "Feature", "properties": {"name": "Field"},
         "geometry": {"type": "Polygon", "coordinates": [[
             [23.002, 37.002], [23.003, 37.002], [23.0025, 37.003], [23.002, 37.002]]]}},
    ],
})


def _draw(scene, options=OverlayOptions(), fence_height=3.0):
    projector = Projector(ORIGIN, observer_height=1.6)
    targets = extract_targets(ORIGIN, COLLECTION)
    return draw_scene(scene, projector, targets, COLLECTION, options, fence_height)


def _on(scene, layer):
    return [e for e in scene.msp if e.dxf.layer == layer]


def test_new_scene_has_engine_layers():
    scene = Scene()
    for name in ENGINE_LAYERS:
        assert name in scene.doc.layers
    assert scene.engine_entities() == []


def test_primitive_counts():
    scene = Scene()
    counts = _draw(scene)
    assert counts == {"markers": 1, "labels": 2, "lines": 1, "polygons": 1, "fences": 3}
    assert [e.dxftype() for e in _on(scene, LAYER_MARKERS)] == ["MESH"]
    assert [e.dxftype() for e in _on(scene, LAYER_LINES)] == ["POLYLINE"]
    assert sorted(e.dxftype() for e in _on(scene, LAYER_POLYGONS)) == ["HATCH", "POLYLINE"]
    assert len(_on(scene, LAYER_FENCES)) == 3


def test_collinear_line_vertex_is_simplified_away():
    scene = Scene()
    _draw(scene)
    (line,) = _on(scene, LAYER_LINES)
    assert len(list(line.points())) == 3


def test_fences_rise_from_ground():
    scene = Scene()
    _draw(scene, fence_height=2.5)
    for face in _on(scene, LAYER_FENCES):
        assert face.dxf.vtx0.z == 0.0
        assert face.dxf.vtx1.z == 0.0
        assert face.dxf.vtx2.z == pytest.approx(2.5)
        assert face.dxf.vtx3.z == pytest.approx(2.5)


def test_point_label_sits_above_ground_marker():
    scene = Scene()
    _draw(scene, OverlayOptions(height_offset=0.5))
    labels = {e.dxf.text: e for e in _on(scene, LAYER_LABELS)}
    assert set(labels) == {"Tower", "Field"}
    assert labels["Tower"].dxf.insert.z == pytest.approx(0.5 + LABEL_RISE_M)
    assert labels["Field"].dxf.insert.z == pytest.approx(3.0 + 0.5 + LABEL_RISE_M)


def test_redraw_replaces_previous_primitives():
    scene = Scene()
    _draw(scene)
    first = len(scene.engine_entities())
    _draw(scene)
    assert len(scene.engine_entities()) == first


def test_clear_leaves_foreign_entities():
    scene = Scene()
    scene.doc.layers.add("SURVEY")
    scene.msp.add_line((0, 0), (10, 10), dxfattribs={"layer": "SURVEY"})
    _draw(scene)
    assert scene.clear() > 0
    assert [e.dxf.layer for e in scene.msp] == ["SURVEY"]


@pytest.mark.parametrize("symbol", list(PointSymbol))
def test_every_point_symbol_renders_a_mesh(symbol):
    scene = Scene()
    _draw(scene, OverlayOptions(point_symbol=symbol, show_labels=False))
    assert [e.dxftype() for e in _on(scene, LAYER_MARKERS)] == ["MESH"]
    assert _on(scene, LAYER_LABELS) == []


def test_transparency_is_applied():
    scene = Scene()
    _draw(scene, OverlayOptions(transparency=0.5, line_color="#ff0000"))
    (line,) = _on(scene, LAYER_LINES)
    assert line.rgb == (255, 0, 0)
    assert line.transparency == pytest.approx(0.5, abs=0.01)
